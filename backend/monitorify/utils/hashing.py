"""Hashing utilities for guest API keys."""
import hashlib
import secrets
from typing import Optional
from monitorify.config import settings
from monitorify.constants import GUEST_KEY_PREFIX


def hash_api_key(api_key: str, salt: Optional[str] = None) -> str:
    """
    Hash an API key using SHA-256 with salt.

    The hash is deterministic so it can be used as a lookup key.

    Args:
        api_key: The API key to hash
        salt: Salt override (defaults to the configured salt)

    Returns:
        Hex digest of the hashed key
    """
    salted_key = f"{api_key}{settings.api_key_salt if salt is None else salt}"
    return hashlib.sha256(salted_key.encode()).hexdigest()


def generate_guest_key() -> str:
    """
    Generate a new guest API key.

    Returns:
        A new API key string (format: guest_<48 hex chars>)
    """
    return f"{GUEST_KEY_PREFIX}{secrets.token_hex(24)}"


def generate_file_token() -> str:
    """Unguessable token for generated artifact filenames."""
    return secrets.token_hex(10)
