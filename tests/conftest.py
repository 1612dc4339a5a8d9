import pytest

from totp_tool.otp_core import encode_base32

# RFC 4226 / RFC 6238 reference seeds
RFC_SEED_SHA1 = b"12345678901234567890"
RFC_SEED_SHA256 = b"12345678901234567890123456789012"
RFC_SEED_SHA512 = b"1234567890123456789012345678901234567890123456789012345678901234"


@pytest.fixture
def rfc_secret():
    """Base32 form of the RFC 4226 seed (GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ)."""
    return encode_base32(RFC_SEED_SHA1)


@pytest.fixture
def scripted():
    """Build a fake input() that replays answers, then raises EOFError."""

    def factory(*answers):
        remaining = list(answers)

        def read(prompt=""):
            if not remaining:
                raise EOFError
            return remaining.pop(0)

        return read

    return factory
