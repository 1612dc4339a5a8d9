import dataclasses

import pytest

from totp_tool.errors import InvalidConfiguration, InvalidEncoding, InvalidKey, OTPError
from totp_tool.key import DEFAULT_SECRET_SIZES, Key, make_key_with_secret, make_random_key
from totp_tool.otp_core import Algorithm, Digits, encode_base32


def test_make_key_with_secret_wraps_bytes_unchanged():
    raw = b"Hello!\xde\xad\xbe\xef"
    key = make_key_with_secret("example.com", "user@example.com", raw)
    assert key.secret == "JBSWY3DPEHPK3PXP"
    assert key.secret_bytes() == raw
    assert key.algorithm is Algorithm.SHA1
    assert key.digits is Digits.SIX
    assert key.period == 30


def test_make_key_with_secret_rejects_empty():
    with pytest.raises(InvalidKey):
        make_key_with_secret("example.com", "user@example.com", b"")


def test_make_key_with_secret_rejects_bad_config():
    with pytest.raises(InvalidConfiguration):
        make_key_with_secret("example.com", "user", b"\x01", algorithm="MD5")
    with pytest.raises(InvalidConfiguration):
        make_key_with_secret("example.com", "user", b"\x01", digits=7)


@pytest.mark.parametrize("algorithm", list(Algorithm))
def test_random_key_size_follows_algorithm(algorithm):
    key = make_random_key("example.com", "user@example.com", algorithm)
    assert len(key.secret_bytes()) == DEFAULT_SECRET_SIZES[algorithm]
    assert key.algorithm is algorithm


def test_random_key_custom_size_and_uniqueness():
    first = make_random_key("example.com", "user", secret_size=10)
    second = make_random_key("example.com", "user", secret_size=10)
    assert len(first.secret_bytes()) == 10
    assert first.secret != second.secret
    with pytest.raises(InvalidKey):
        make_random_key("example.com", "user", secret_size=0)


def test_period_is_fixed():
    key = Key("example.com", "user", "JBSWY3DPEHPK3PXP")
    assert key.period == 30
    with pytest.raises(TypeError):
        Key("example.com", "user", "JBSWY3DPEHPK3PXP", period=60)
    with pytest.raises(dataclasses.FrozenInstanceError):
        key.period = 60


def test_key_coerces_algorithm_and_digits():
    key = Key("example.com", "user", "JBSWY3DPEHPK3PXP", algorithm="SHA256", digits=8)
    assert key.algorithm is Algorithm.SHA256
    assert key.digits is Digits.EIGHT
    assert "algorithm=SHA256&digits=8&period=30" in key.provisioning_uri()
    with pytest.raises(InvalidConfiguration):
        Key("example.com", "user", "JBSWY3DPEHPK3PXP", algorithm="MD5")


def test_key_is_immutable():
    key = make_random_key("example.com", "user")
    with pytest.raises(dataclasses.FrozenInstanceError):
        key.secret = "AAAA"


def test_fields():
    key = Key("example.com", "user@example.com", "JBSWY3DPEHPK3PXP")
    assert key.fields() == {
        "issuer": "example.com",
        "account_name": "user@example.com",
        "secret": "JBSWY3DPEHPK3PXP",
    }


def test_provisioning_uri():
    key = Key("example.com", "user@example.com", "JBSWY3DPEHPK3PXP")
    assert key.provisioning_uri() == (
        "otpauth://totp/example.com:user@example.com"
        "?secret=JBSWY3DPEHPK3PXP&issuer=example.com&algorithm=SHA1&digits=6&period=30"
    )


def test_provisioning_uri_escapes_label_and_query():
    key = Key("ACME Co", "alice smith", "JBSWY3DPEHPK3PXP", Algorithm.SHA512, Digits.EIGHT)
    uri = key.provisioning_uri()
    assert uri.startswith("otpauth://totp/ACME%20Co:alice%20smith?")
    assert "issuer=ACME%20Co" in uri
    assert "algorithm=SHA512&digits=8&period=30" in uri


@pytest.mark.parametrize("issuer", ["ACME Co", "ACME:EU", "a%3Ab"])
def test_from_uri_round_trip(issuer):
    key = make_random_key(issuer, "alice@example.com", Algorithm.SHA256, Digits.EIGHT)
    assert Key.from_uri(key.provisioning_uri()) == key


def test_issuer_colon_is_escaped_in_label():
    uri = Key("ACME:EU", "alice", "JBSWY3DPEHPK3PXP").provisioning_uri()
    assert uri.startswith("otpauth://totp/ACME%3AEU:alice?")
    assert Key.from_uri(uri).issuer == "ACME:EU"


def test_from_uri_defaults():
    key = Key.from_uri("otpauth://totp/alice?secret=jbswy3dpehpk3pxp")
    assert key == Key("", "alice", "JBSWY3DPEHPK3PXP")


@pytest.mark.parametrize(
    "uri, error",
    [
        ("https://totp/alice?secret=JBSWY3DPEHPK3PXP", ValueError),
        ("otpauth://hotp/alice?secret=JBSWY3DPEHPK3PXP&counter=0", ValueError),
        ("otpauth://totp/ACME:alice", ValueError),
        ("otpauth://totp/ACME:alice?secret=JBSWY3DPEHPK3PXP&issuer=Other", OTPError),
        ("otpauth://totp/alice?secret=JBSWY3DPEHPK3PXP&period=60", InvalidConfiguration),
        ("otpauth://totp/alice?secret=JBSWY3DPEHPK3PXP&algorithm=MD5", InvalidConfiguration),
        ("otpauth://totp/alice?secret=JBSWY3DPEHPK3PXP&digits=7", InvalidConfiguration),
        ("otpauth://totp/alice?secret=JBSWY3D!", InvalidEncoding),
    ],
)
def test_from_uri_rejects(uri, error):
    with pytest.raises(error):
        Key.from_uri(uri)


def test_key_generates_and_validates_with_its_own_settings():
    key = make_key_with_secret("example.com", "user", b"12345678901234567890", digits=Digits.EIGHT)
    assert key.generate_code(59) == "94287082"
    assert key.validate_code("94287082", 59, skew=0)
    assert key.validate_code("94287082", 89, skew=1)
    assert not key.validate_code("94287082", 89, skew=0)
    assert key.secret == encode_base32(b"12345678901234567890")
