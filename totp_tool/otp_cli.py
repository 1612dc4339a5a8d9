#!/usr/bin/env python3
"""
otp_cli.py — CLI wrapper for otp_core / key / secret_derivation.

Without a subcommand an interactive menu runs:
1. Generate a new shared secret (random, or deterministic from password + salt)
2. Generate a passcode
3. Validate a passcode
4. Exit

Subcommands for scripts:
- secret   : new random or deterministic secret, printed with its otpauth URI
- code     : current TOTP code for a secret
- validate : check a code (exit status 0 = valid, 1 = invalid)
- uri      : otpauth URI for an existing secret

eg..:
    python -m totp_tool --algorithm SHA256 --digits 8
    python -m totp_tool secret --password "correct horse" --salt "battery staple"
    python -m totp_tool code --secret JBSWY3DPEHPK3PXP
    python -m totp_tool --skew 2 validate --secret JBSWY3DPEHPK3PXP --code 123456
"""

import argparse
import dataclasses
import logging
import sys
import time
from typing import Callable

from .errors import DerivationError, InvalidConfiguration, OTPError
from .key import Key, make_key_with_secret, make_random_key
from .otp_core import (
    DEFAULT_SKEW,
    Algorithm,
    Digits,
    decode_base32,
    generate_code,
    time_remaining,
    validate_code,
)
from .secret_derivation import derive_secret

logger = logging.getLogger(__name__)

DEFAULT_ISSUER = "example.com"
DEFAULT_ACCOUNT = "user@example.com"

MENU = """
TOTP Authentication Tool
1. Generate a new shared secret
2. Generate a passcode
3. Validate a passcode
4. Exit"""

Reader = Callable[[str], str]
Clock = Callable[[], float]


@dataclasses.dataclass(frozen=True)
class CLISettings:
    issuer: str
    account: str
    skew: int
    algorithm: Algorithm
    digits: Digits


def settings_from_args(args: argparse.Namespace) -> CLISettings:
    """Validate the global flags. Raises InvalidConfiguration."""
    if args.skew < 0:
        raise InvalidConfiguration("Invalid skew. Supported values are 0 or more periods.")
    return CLISettings(
        issuer=args.issuer,
        account=args.account,
        skew=args.skew,
        algorithm=Algorithm.coerce(args.algorithm),
        digits=Digits.coerce(args.digits),
    )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[+] %(message)s",
    )


def display(key: Key) -> None:
    """Print the issuer / account / secret triplet and the otpauth URI."""
    fields = key.fields()
    print(f"Issuer:       {fields['issuer']}")
    print(f"Account Name: {fields['account_name']}")
    print(f"Secret:       {fields['secret']}")
    print(f"URI:          {key.provisioning_uri()}")


def deterministic_key(settings: CLISettings, password: str, salt: str) -> Key:
    # The derived Base32 string itself is the key material, as ASCII bytes
    secret = derive_secret(password, salt)
    return make_key_with_secret(
        settings.issuer, settings.account, secret.encode("ascii"),
        settings.algorithm, settings.digits,
    )


# --- interactive menu ---
def menu_new_secret(settings: CLISettings, read: Reader, clock: Clock) -> None:
    print("\nChoose secret generation method:")
    print("a. Random (standard)")
    print("b. Deterministic (using password and salt)")
    choice = read("Enter your choice (a/b): ").strip().lower()

    if choice == "a":
        key = make_random_key(settings.issuer, settings.account, settings.algorithm, settings.digits)
        display(key)
        print("Share this secret with the other party.")
    elif choice == "b":
        password = read("Enter password: ")
        salt = read("Enter salt: ")
        try:
            key = deterministic_key(settings, password, salt)
        except DerivationError as e:
            print(f"Error generating shared secret: {e}")
            return
        display(key)
        print("Share the password and salt with the other party.")
    else:
        print("Invalid choice")


def menu_generate_code(settings: CLISettings, read: Reader, clock: Clock) -> None:
    secret = read("Enter the shared secret: ").strip()
    now = clock()
    try:
        code = generate_code(secret, now, settings.skew, settings.algorithm, settings.digits)
    except OTPError as e:
        print(f"Error generating passcode: {e}")
        return
    print(f"Current Passcode: {code}  (valid ~{time_remaining(now):2d}s)")


def menu_validate_code(settings: CLISettings, read: Reader, clock: Clock) -> None:
    secret = read("Enter the shared secret: ").strip()
    passcode = read("Enter the passcode to validate: ").strip()
    if validate_code(passcode, secret, clock(), settings.skew, settings.algorithm, settings.digits):
        print("Valid passcode!")
    else:
        print("Invalid passcode!")


MENU_ACTIONS = {
    "1": menu_new_secret,
    "2": menu_generate_code,
    "3": menu_validate_code,
}


def run_menu(settings: CLISettings, read: Reader = input, clock: Clock = time.time) -> int:
    """Interactive loop. Returns the exit status (0) on '4', end of input or Ctrl+C."""
    while True:
        print(MENU)
        try:
            choice = read("Enter your choice: ").strip()
            if choice == "4":
                print("Exiting...")
                return 0
            action = MENU_ACTIONS.get(choice)
            if action is None:
                print("Invalid choice. Please try again.")
            else:
                action(settings, read, clock)
            print("\nPress Enter to continue...")
            read("")
        except EOFError:
            print("\nExiting...")
            return 0
        except KeyboardInterrupt:
            print("\nBye.")
            return 0


# --- CLI command handlers ---
def cmd_menu(args, settings: CLISettings) -> int:
    return run_menu(settings)


def cmd_secret(args, settings: CLISettings) -> int:
    if (args.password is None) != (args.salt is None):
        print("[!] --password and --salt must be given together.")
        return 1
    if args.password is None:
        key = make_random_key(settings.issuer, settings.account, settings.algorithm, settings.digits)
    else:
        try:
            key = deterministic_key(settings, args.password, args.salt)
        except DerivationError as e:
            print(f"[!] Error generating shared secret: {e}")
            return 1
    display(key)
    return 0


def cmd_code(args, settings: CLISettings) -> int:
    now = time.time()
    try:
        code = generate_code(args.secret, now, settings.skew, settings.algorithm, settings.digits)
    except OTPError as e:
        print(f"[!] Error generating passcode: {e}")
        return 1
    print(f"TOTP ({int(settings.digits)}d): {code}  (valid ~{time_remaining(now):2d}s)")
    return 0


def cmd_validate(args, settings: CLISettings) -> int:
    ok = validate_code(args.code, args.secret, None, settings.skew, settings.algorithm, settings.digits)
    if ok:
        print("[+] TOTP code is VALID")
        return 0
    print("[-] TOTP code is INVALID")
    return 1


def cmd_uri(args, settings: CLISettings) -> int:
    try:
        secret = decode_base32(args.secret)
        key = make_key_with_secret(
            settings.issuer, settings.account, secret, settings.algorithm, settings.digits
        )
    except OTPError as e:
        print(f"[!] Invalid secret: {e}")
        return 1
    print(key.provisioning_uri())
    return 0


# --- Argparse builder ---
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="TOTP generator / validator with deterministic secrets")
    p.add_argument("--issuer", default=DEFAULT_ISSUER, help="The issuer for the TOTP key")
    p.add_argument("--account", default=DEFAULT_ACCOUNT, help="The account name for the TOTP key")
    p.add_argument("--skew", type=int, default=DEFAULT_SKEW,
                   help="The skew value for TOTP validation: 1 equals 30 seconds")
    p.add_argument("--algorithm", default=Algorithm.SHA1.value,
                   help="The hashing algorithm to use (SHA1, SHA256, SHA512)")
    p.add_argument("--digits", default=str(int(Digits.SIX)),
                   help="The number of digits in the passcode (6 or 8)")
    p.add_argument("--verbose", action="store_true", help="Verbose output")
    p.set_defaults(func=cmd_menu)

    sub = p.add_subparsers(dest="cmd")

    ps = sub.add_parser("secret", help="Generate a random or deterministic shared secret")
    ps.add_argument("--password", help="Password for a deterministic secret")
    ps.add_argument("--salt", help="Salt for a deterministic secret")
    ps.set_defaults(func=cmd_secret)

    pc = sub.add_parser("code", help="Print the current TOTP code")
    pc.add_argument("--secret", required=True, help="Base32 shared secret")
    pc.set_defaults(func=cmd_code)

    pv = sub.add_parser("validate", help="Validate a TOTP code")
    pv.add_argument("--secret", required=True, help="Base32 shared secret")
    pv.add_argument("--code", required=True, help="OTP code to verify")
    pv.set_defaults(func=cmd_validate)

    pu = sub.add_parser("uri", help="Print the otpauth URI for a secret")
    pu.add_argument("--secret", required=True, help="Base32 shared secret")
    pu.set_defaults(func=cmd_uri)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    try:
        settings = settings_from_args(args)
    except InvalidConfiguration as e:
        print(e)
        return 1
    logger.debug("Settings: %s", settings)
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
