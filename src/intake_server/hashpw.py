"""``intake-hash-secret`` — print the passlib hash for a login secret.

The output goes into ``ATTORNEY_SECRET_HASH`` or the ``clients:`` map of
the credentials file; the plaintext secret is never stored.

Usage::

    intake-hash-secret                 # prompts twice, no echo
    intake-hash-secret --scope alvarado-pool
"""

import argparse
import getpass
import sys

from intake_server.auth import hash_secret


def cli() -> None:
    """Console-script entry point: ``intake-hash-secret``."""
    parser = argparse.ArgumentParser(
        description="Hash a login secret for the intake server configuration.",
    )
    parser.add_argument(
        "--scope",
        default=None,
        help="Case slug; prints a ready-to-paste credentials-file line",
    )
    args = parser.parse_args()

    secret = getpass.getpass("Secret: ")
    if not secret:
        print("Secret must not be empty", file=sys.stderr)
        sys.exit(1)
    if getpass.getpass("Repeat: ") != secret:
        print("Secrets do not match", file=sys.stderr)
        sys.exit(1)

    hashed = hash_secret(secret)
    if args.scope:
        print(f'  {args.scope}: "{hashed}"')
    else:
        print(hashed)


if __name__ == "__main__":
    cli()
