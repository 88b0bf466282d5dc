"""Security utilities for the login flow and chat interactions."""

import base64
import secrets
from functools import lru_cache

from cryptography.exceptions import InvalidSignature as CryptoInvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure random token.

    Args:
        length: Number of random bytes to generate (default 32)

    Returns:
        URL-safe base64 encoded token
    """
    return (
        base64.urlsafe_b64encode(secrets.token_bytes(length))
        .decode("utf-8")
        .rstrip("=")
    )


def generate_state() -> str:
    """Generate a cryptographically secure state parameter for CSRF protection.

    Returns:
        URL-safe base64 encoded state (256 bits of entropy)
    """
    return generate_secure_token(32)


def states_match(expected: str | None, received: str | None) -> bool:
    """Constant-time comparison of the stored and returned OAuth state."""
    if not expected or not received:
        return False
    return secrets.compare_digest(expected.encode(), received.encode())


@lru_cache(maxsize=8)
def load_ed25519_public_key(hex_key: str) -> Ed25519PublicKey:
    return Ed25519PublicKey.from_public_bytes(bytes.fromhex(hex_key))


def verify_interaction_signature(
    public_key_hex: str, signature_hex: str | None, timestamp: str | None, body: bytes
) -> bool:
    """Check a chat platform interaction request.

    The platform signs ``timestamp + body`` with the application's Ed25519 key
    and sends the hex signature alongside the timestamp.

    Returns:
        True only for a well-formed, valid signature
    """
    if not signature_hex or not timestamp:
        return False
    try:
        key = load_ed25519_public_key(public_key_hex)
        key.verify(bytes.fromhex(signature_hex), timestamp.encode() + body)
    except (ValueError, CryptoInvalidSignature):
        return False
    return True
