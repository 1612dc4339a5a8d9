"""
otp_core.py — Core library for TOTP / HOTP.

Goals:
- Pure functions only: no prompts, no printing, no files. The CLI lives in
  otp_cli.py and the key descriptor in key.py.
- HOTP per RFC 4226, TOTP per RFC 6238 with HMAC-SHA1/SHA256/SHA512 and 6 or
  8 digits.
- Validation across a skew window with constant-time comparison.

Security notes:
- Codes are accepted again within the same (or an adjacent, with skew) time
  step. Nothing here keeps state, so replay protection is up to the caller.
- Secrets and codes are never logged.
"""

import base64
import datetime
import enum
import hashlib
import hmac
import logging
import math
import struct
import time
from typing import Iterator, Optional, Union

from .errors import InvalidConfiguration, InvalidEncoding, InvalidKey, InvalidSecret

logger = logging.getLogger(__name__)

# --- Config / constants ----------------------------------------------------
PERIOD = 30                 # TOTP step (seconds); fixed for interoperability
DEFAULT_SKEW = 1            # +/- steps accepted by validate_code
MAX_COUNTER = 2 ** 64 - 1

TimeLike = Union[None, int, float, datetime.datetime]


class Algorithm(enum.Enum):
    """Hash function used inside HMAC."""

    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"

    @property
    def hash_function(self):
        return getattr(hashlib, self.value.lower())

    @classmethod
    def coerce(cls, value) -> "Algorithm":
        """Accept an Algorithm member or its name ('SHA256', 'sha256')."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise InvalidConfiguration(
                "Invalid algorithm. Supported values are SHA1, SHA256, and SHA512."
            ) from None


class Digits(enum.IntEnum):
    """Number of decimal digits in a rendered code."""

    SIX = 6
    EIGHT = 8

    @classmethod
    def coerce(cls, value) -> "Digits":
        if isinstance(value, cls):
            return value
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise InvalidConfiguration(
                "Invalid number of digits. Supported values are 6 or 8."
            ) from None


# --- Codec -----------------------------------------------------------------
def encode_base32(data: bytes) -> str:
    """
    Base32 (RFC 4648 alphabet, uppercase) without '=' padding.

    Example: encode_base32(b"Hello!") -> "JBSWY3DPEE"
    """
    return base64.b32encode(data).decode("ascii").rstrip("=")


def decode_base32(text: str) -> bytes:
    """
    Decode unpadded (or padded) Base32 text into bytes.

    - Surrounding whitespace is ignored and lowercase is accepted.
    - Missing padding is restored before decoding, so the text length alone
      decides whether the trailing group holds whole bytes.

    Raises:
        InvalidEncoding: foreign characters, or a length that leaves 1, 3 or
            6 characters in the final 8-character group.
    """
    if not isinstance(text, str):
        raise InvalidEncoding("Base32 input must be a string")
    text = text.strip().upper()
    missing_padding = len(text) % 8
    if missing_padding in (1, 3, 6):
        raise InvalidEncoding(f"Base32 length {len(text)} does not encode whole bytes")
    if missing_padding:
        text += "=" * (8 - missing_padding)
    try:
        return base64.b32decode(text)
    except ValueError as e:
        # binascii.Error for bad digits/padding, ValueError for non-ASCII
        raise InvalidEncoding("Invalid Base32 text") from e


def encode_counter(counter: int) -> bytes:
    """
    Encode a counter as the 8-byte big-endian message RFC 4226 feeds to HMAC.

    Example: encode_counter(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'
    """
    if not 0 <= counter <= MAX_COUNTER:
        raise ValueError(f"counter must fit in an unsigned 64-bit integer, got {counter}")
    return struct.pack(">Q", counter)


# --- HOTP --------------------------------------------------------------------
def dynamic_truncate(mac: bytes) -> int:
    """
    RFC 4226 dynamic truncation.

    - offset = last byte & 0x0F
    - 4 bytes from offset, MSB of the first cleared (0x7F)
    - returns a 31-bit unsigned integer
    """
    offset = mac[-1] & 0x0F
    return (
        ((mac[offset] & 0x7F) << 24)
        | ((mac[offset + 1] & 0xFF) << 16)
        | ((mac[offset + 2] & 0xFF) << 8)
        | (mac[offset + 3] & 0xFF)
    )


def hotp(
    secret: bytes,
    counter: int,
    algorithm: Algorithm = Algorithm.SHA1,
    digits: Digits = Digits.SIX,
) -> str:
    """
    Compute an HOTP code.

    Steps:
    1. HMAC(algorithm, key=secret, msg=8-byte big-endian counter)
    2. Dynamic truncate -> 31-bit integer
    3. integer % 10^digits, zero-padded to exactly `digits` characters

    Arguments:
        secret: raw key bytes (already Base32-decoded)
        counter: unsigned 64-bit counter
        algorithm: Algorithm member or name
        digits: 6 or 8

    Raises:
        InvalidKey: if secret is empty
    """
    if not secret:
        raise InvalidKey("Key material must not be empty")
    algorithm = Algorithm.coerce(algorithm)
    digits = Digits.coerce(digits)

    msg = encode_counter(counter)
    logger.debug("HOTP: HMAC-%s(key=secret, msg=counter=%d)", algorithm.value, counter)
    mac = hmac.new(secret, msg, algorithm.hash_function).digest()

    code = dynamic_truncate(mac) % (10 ** digits)
    return str(code).zfill(digits)


def validate_hotp(
    candidate: str,
    secret: str,
    counter: int,
    algorithm: Algorithm = Algorithm.SHA1,
    digits: Digits = Digits.SIX,
) -> bool:
    """Check `candidate` against the HOTP code for exactly `counter`. Never raises on bad input."""
    algorithm = Algorithm.coerce(algorithm)
    digits = Digits.coerce(digits)
    if not _has_length(candidate, digits):
        return False
    try:
        key = _decode_secret(secret)
        expected = hotp(key, counter, algorithm, digits)
    except ValueError:
        # InvalidSecret, InvalidKey, or a counter outside 64 bits
        return False
    return _codes_equal(candidate, expected)


# --- TOTP --------------------------------------------------------------------
def _unix_seconds(for_time: TimeLike) -> int:
    if for_time is None:
        return int(time.time())
    if isinstance(for_time, datetime.datetime):
        if for_time.tzinfo is None:
            for_time = for_time.replace(tzinfo=datetime.timezone.utc)
        return math.floor(for_time.timestamp())
    return math.floor(for_time)


def current_counter(for_time: TimeLike = None, period: int = PERIOD) -> int:
    """
    TOTP counter: floor(unix_seconds / period).

    `for_time` may be None (now), Unix seconds, or a datetime (naive means UTC).
    """
    return _unix_seconds(for_time) // period


def time_remaining(for_time: TimeLike = None, period: int = PERIOD) -> int:
    """Seconds left before the code for `for_time` rolls over."""
    return period - (_unix_seconds(for_time) % period)


def generate_code(
    secret: str,
    for_time: TimeLike = None,
    skew: int = 0,
    algorithm: Algorithm = Algorithm.SHA1,
    digits: Digits = Digits.SIX,
) -> str:
    """
    Generate the TOTP code for `for_time` (default: now).

    `skew` is accepted so generate/validate take the same options; generation
    always uses the exact current step.

    Raises:
        InvalidSecret: if the Base32 secret cannot be decoded
        InvalidKey: if the secret decodes to no bytes
    """
    key = _decode_secret(secret)
    counter = current_counter(for_time)
    logger.debug("TOTP: counter=%d, period=%ds", counter, PERIOD)
    return hotp(key, counter, algorithm, digits)


def validate_code(
    candidate: str,
    secret: str,
    for_time: TimeLike = None,
    skew: int = DEFAULT_SKEW,
    algorithm: Algorithm = Algorithm.SHA1,
    digits: Digits = Digits.SIX,
) -> bool:
    """
    Validate a TOTP code against every step in [-skew, +skew].

    A malformed secret, a candidate of the wrong length and a plain mismatch
    all return False. Every window code is compared, even after a match, so
    timing does not reveal which offset matched.
    """
    algorithm = Algorithm.coerce(algorithm)
    digits = Digits.coerce(digits)
    if skew < 0:
        raise ValueError("skew must be non-negative")

    if not _has_length(candidate, digits):
        logger.debug("TOTP validation: candidate length does not match %d digits", digits)
        return False
    try:
        key = _decode_secret(secret)
    except InvalidSecret:
        logger.debug("TOTP validation: secret could not be decoded")
        return False
    if not key:
        return False

    base_counter = current_counter(for_time)
    matched = False
    for counter in _window(base_counter, skew):
        expected = hotp(key, counter, algorithm, digits)
        matched |= _codes_equal(candidate, expected)
    logger.debug("TOTP validation: counter=%d, skew=%d, matched=%s", base_counter, skew, matched)
    return matched


# --- helpers -----------------------------------------------------------------
def _decode_secret(secret: str) -> bytes:
    try:
        return decode_base32(secret)
    except InvalidEncoding as e:
        raise InvalidSecret("Invalid Base32 secret") from e


def _window(base_counter: int, skew: int) -> Iterator[int]:
    """Counters base, base-1, base+1, ... base-skew, base+skew inside [0, MAX_COUNTER]."""
    offsets = [0]
    for i in range(1, skew + 1):
        offsets.extend((-i, i))
    for offset in offsets:
        counter = base_counter + offset
        if 0 <= counter <= MAX_COUNTER:
            yield counter


def _has_length(candidate: Optional[str], digits: int) -> bool:
    return isinstance(candidate, str) and len(candidate) == digits


def _codes_equal(candidate: str, expected: str) -> bool:
    # compare_digest rejects non-ASCII str, bytes work for any input
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("ascii"))
