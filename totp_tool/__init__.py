"""
totp_tool package
=================

Generate and verify TOTP codes (RFC 6238, on top of RFC 4226 HOTP) and derive
shared secrets deterministically from a password and a salt.

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- HOTP:
  code = Truncate(HMAC-<alg>(key=secret, msg=counter)) mod 10^digits
- TOTP:
  HOTP with counter = floor(unix_time / 30)
  Validation accepts counter-skew .. counter+skew to absorb clock drift.
- Dynamic truncation:
  4 bytes taken at offset (last byte & 0x0F), top bit cleared.
- Deterministic secret:
  Base32(HKDF-SHA256(Argon2id(password, salt), salt, "TOTP-Secret"))[:32]

──────────────────────────────────────────────
Quick usage
──────────────────────────────────────────────
>>> from totp_tool import make_random_key, generate_code, validate_code
>>> key = make_random_key("example.com", "alice@example.com")
>>> code = generate_code(key.secret)
>>> validate_code(code, key.secret, skew=1)
True
>>> key.provisioning_uri()   # feed to a QR code renderer
"""
from .errors import (
    DerivationError,
    InvalidConfiguration,
    InvalidEncoding,
    InvalidKey,
    InvalidSecret,
    OTPError,
)
from .key import Key, make_key_with_secret, make_random_key
from .otp_core import (
    PERIOD,
    Algorithm,
    Digits,
    current_counter,
    decode_base32,
    encode_base32,
    encode_counter,
    generate_code,
    hotp,
    time_remaining,
    validate_code,
    validate_hotp,
)
from .secret_derivation import derive_secret

__version__ = "1.0.0"
