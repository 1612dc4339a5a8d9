"""
key.py — Key descriptor: issuer, account name and secret of one TOTP key.

A Key is created once (random or from caller-supplied bytes), never mutated,
and rendered for the other party as plain fields or as an otpauth:// URI
that authenticator apps (Google Authenticator, Authy, ...) can import.
"""

import dataclasses
import logging
import os
from typing import Dict, Optional
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlparse

from . import otp_core
from .errors import InvalidConfiguration, InvalidKey, OTPError
from .otp_core import PERIOD, Algorithm, Digits

logger = logging.getLogger(__name__)

# RFC 6238 reference key size for each hash
DEFAULT_SECRET_SIZES = {
    Algorithm.SHA1: 20,
    Algorithm.SHA256: 32,
    Algorithm.SHA512: 64,
}


@dataclasses.dataclass(frozen=True)
class Key:
    issuer: str
    account_name: str
    secret: str
    algorithm: Algorithm = Algorithm.SHA1
    digits: Digits = Digits.SIX

    def __post_init__(self):
        # frozen: bypass the generated __setattr__
        object.__setattr__(self, "algorithm", Algorithm.coerce(self.algorithm))
        object.__setattr__(self, "digits", Digits.coerce(self.digits))

    @property
    def period(self) -> int:
        """Always PERIOD; the step is not configurable per key."""
        return PERIOD

    def fields(self) -> Dict[str, str]:
        """Issuer / account name / secret triplet shown to the user."""
        return {
            "issuer": self.issuer,
            "account_name": self.account_name,
            "secret": self.secret,
        }

    def secret_bytes(self) -> bytes:
        return otp_core.decode_base32(self.secret)

    def provisioning_uri(self) -> str:
        """
        otpauth://totp/{issuer}:{account}?secret=..&issuer=..&algorithm=..&digits=..&period=30

        See also:
            https://github.com/google/google-authenticator/wiki/Key-Uri-Format
        """
        label = quote(self.issuer, safe="") + ":" + quote(self.account_name, safe="@")
        query = urlencode(
            [
                ("secret", self.secret),
                ("issuer", self.issuer),
                ("algorithm", self.algorithm.value),
                ("digits", int(self.digits)),
                ("period", PERIOD),
            ]
        )
        return "otpauth://totp/{0}?{1}".format(label, query.replace("+", "%20"))

    def generate_code(self, for_time: otp_core.TimeLike = None) -> str:
        return otp_core.generate_code(
            self.secret, for_time, algorithm=self.algorithm, digits=self.digits
        )

    def validate_code(
        self,
        candidate: str,
        for_time: otp_core.TimeLike = None,
        skew: int = otp_core.DEFAULT_SKEW,
    ) -> bool:
        return otp_core.validate_code(
            candidate, self.secret, for_time, skew, self.algorithm, self.digits
        )

    @classmethod
    def from_uri(cls, uri: str) -> "Key":
        """
        Parse a TOTP provisioning URI back into a Key.

        Raises:
            ValueError: not an otpauth://totp URI, or no secret
            OTPError: issuer mismatch between label and query
            InvalidConfiguration: unsupported algorithm, digits or period
        """
        parsed = urlparse(uri)
        if parsed.scheme != "otpauth":
            raise ValueError("Not an otpauth URI")
        if parsed.netloc != "totp":
            raise ValueError("Not a TOTP URI")

        # split before unquoting: an issuer may carry an escaped ":" (%3A)
        parts = parsed.path[1:].split(":", 1)
        if len(parts) == 1:
            issuer, account_name = None, unquote(parts[0])
        else:
            issuer, account_name = unquote(parts[0]), unquote(parts[1]).lstrip()

        secret = None
        algorithm = Algorithm.SHA1
        digits = Digits.SIX
        for name, value in parse_qsl(parsed.query):
            if name == "secret":
                secret = value
            elif name == "issuer":
                if issuer is not None and issuer != value:
                    raise OTPError("If issuer is specified in both label and parameters, it should be equal.")
                issuer = value
            elif name == "algorithm":
                algorithm = Algorithm.coerce(value)
            elif name == "digits":
                digits = Digits.coerce(value)
            elif name == "period":
                if not value.isdigit() or int(value) != PERIOD:
                    raise InvalidConfiguration(f"Only a {PERIOD}s period is supported, got {value}")

        if not secret:
            raise ValueError("No secret found in URI")
        otp_core.decode_base32(secret)
        return cls(issuer or "", account_name, secret.upper(), algorithm, digits)


def make_key_with_secret(
    issuer: str,
    account_name: str,
    secret: bytes,
    algorithm: Algorithm = Algorithm.SHA1,
    digits: Digits = Digits.SIX,
) -> Key:
    """
    Wrap caller-supplied secret bytes (unchanged) into a Key.

    Raises:
        InvalidKey: if secret is empty
    """
    if not secret:
        raise InvalidKey("Secret must contain at least one byte")
    return Key(
        issuer=issuer,
        account_name=account_name,
        secret=otp_core.encode_base32(secret),
        algorithm=Algorithm.coerce(algorithm),
        digits=Digits.coerce(digits),
    )


def make_random_key(
    issuer: str,
    account_name: str,
    algorithm: Algorithm = Algorithm.SHA1,
    digits: Digits = Digits.SIX,
    secret_size: Optional[int] = None,
) -> Key:
    """
    New Key with a random secret from os.urandom (CSPRNG).

    `secret_size` defaults to the hash's reference size (20/32/64 bytes).
    """
    algorithm = Algorithm.coerce(algorithm)
    size = secret_size if secret_size is not None else DEFAULT_SECRET_SIZES[algorithm]
    if size < 1:
        raise InvalidKey("Secret size must be at least one byte")
    logger.debug("Generated %d-bit random secret for HMAC-%s", size * 8, algorithm.value)
    return make_key_with_secret(issuer, account_name, os.urandom(size), algorithm, digits)
