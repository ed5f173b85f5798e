"""Guest session token helpers."""

import hashlib
import secrets


def generate_session_id() -> str:
    """Generate an opaque guest session token."""
    return secrets.token_urlsafe(24)


def hash_session_token(token: str) -> str:
    """Hash a guest session token for storage alongside a reservation row."""
    return hashlib.sha256(token.encode()).hexdigest()


def session_token_matches(token: str | None, token_hash: str | None) -> bool:
    """Compare a presented session token against a stored hash in constant time."""
    if not token or not token_hash:
        return False
    return secrets.compare_digest(hash_session_token(token), token_hash)


def synthetic_payment_reference(prefix: str) -> str:
    """Build a unique payment marker for flows without a gateway charge."""
    return f"{prefix}-{secrets.token_hex(12)}"
