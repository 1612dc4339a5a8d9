"""
errors.py — Exceptions used across totp_tool.

All of them derive from ValueError, so `except ValueError` around a bad
Base32 secret keeps working.
"""


class OTPError(ValueError):
    """Base class for every error raised by totp_tool."""


class InvalidEncoding(OTPError):
    """Base32 text contains foreign characters or an impossible length."""


class InvalidSecret(OTPError):
    """A shared secret string could not be decoded into key bytes."""


class InvalidKey(OTPError):
    """Key material is empty."""


class DerivationError(OTPError):
    """The Argon2id/HKDF pipeline could not produce a key. Not retryable."""


class InvalidConfiguration(OTPError):
    """Unsupported algorithm, digit count or period."""
