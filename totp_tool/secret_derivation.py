"""
secret_derivation.py — Deterministic TOTP secrets from a password and a salt.

Both parties run derive_secret() on the same memorised password and salt and
end up with the same Base32 secret, so no random secret has to be exchanged.

Pipeline:
1. Argon2id(password, salt)            -> 32 bytes  (memory-hard stretch)
2. HKDF-SHA256(stage 1, salt, info)    -> 32 bytes  (binds the key to TOTP use)
3. Base32 without padding, first 32 characters

All parameters are fixed. Changing any of them yields different secrets and
breaks every counterpart already derived with the old values.
"""

import logging

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.argon2 import Argon2id
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from .errors import DerivationError
from .otp_core import encode_base32

logger = logging.getLogger(__name__)

# --- Argon2id parameters -----------------------------------------------------
ARGON2_TIME_COST = 1          # iterations
ARGON2_MEMORY_COST = 64 * 1024  # KiB
ARGON2_PARALLELISM = 4        # lanes
ARGON2_KEY_LENGTH = 32

# --- HKDF parameters -----------------------------------------------------------
HKDF_INFO = b"TOTP-Secret"
DERIVED_KEY_LENGTH = 32

SECRET_LENGTH = 32            # Base32 characters kept from the encoded key


def stretch_password(password: str, salt: str) -> bytes:
    """
    Stage 1: Argon2id over the password with the salt.

    Raises:
        DerivationError: if the Argon2 backend is unavailable or refuses the
            inputs (OpenSSL-backed Argon2 requires a salt of at least 8 bytes).
    """
    try:
        kdf = Argon2id(
            salt=salt.encode("utf-8"),
            length=ARGON2_KEY_LENGTH,
            iterations=ARGON2_TIME_COST,
            lanes=ARGON2_PARALLELISM,
            memory_cost=ARGON2_MEMORY_COST,
        )
        return kdf.derive(password.encode("utf-8"))
    except (UnsupportedAlgorithm, ValueError) as e:
        raise DerivationError(f"Argon2id stage failed: {e}") from e


def expand_key(key_material: bytes, salt: str) -> bytes:
    """Stage 2: HKDF-SHA256 with the salt reused and the fixed TOTP info string."""
    try:
        hkdf = HKDF(
            algorithm=hashes.SHA256(),
            length=DERIVED_KEY_LENGTH,
            salt=salt.encode("utf-8"),
            info=HKDF_INFO,
        )
        return hkdf.derive(key_material)
    except ValueError as e:
        raise DerivationError(f"HKDF stage failed: {e}") from e


def derive_secret(password: str, salt: str) -> str:
    """
    Derive a 32-character Base32 TOTP secret from `password` and `salt`.

    Deterministic: the same pair always yields the same secret.

    Raises:
        DerivationError: treat as fatal for the current operation.
    """
    logger.debug(
        "Deriving secret: Argon2id(t=%d, m=%dKiB, p=%d) -> HKDF-SHA256(info=%r)",
        ARGON2_TIME_COST, ARGON2_MEMORY_COST, ARGON2_PARALLELISM, HKDF_INFO,
    )
    stretched = stretch_password(password, salt)
    final_key = expand_key(stretched, salt)
    # 32 bytes encode to 52 characters; only the first 32 are kept
    return encode_base32(final_key)[:SECRET_LENGTH]
