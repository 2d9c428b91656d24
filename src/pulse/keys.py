"""API key generation helpers.

Keys look like ``sk-<environment>-<48 hex chars>``. Run as a script to mint
keys for ``PULSE_API_KEYS``::

    python -m pulse.keys prod 3
"""

from __future__ import annotations

import argparse
import hashlib
import re
import secrets

_KEY_PATTERN = re.compile(r"^sk-[a-z0-9]+-[a-f0-9]{48}$")


def generate_api_key(environment: str = "dev") -> str:
    return f"sk-{environment}-{secrets.token_hex(24)}"


def generate_api_keys(count: int = 1, environment: str = "dev") -> list[str]:
    return [generate_api_key(environment) for _ in range(count)]


def is_valid_api_key_format(api_key: str) -> bool:
    return bool(_KEY_PATTERN.match(api_key))


def hash_api_key(api_key: str) -> str:
    """One-way SHA-256 hex digest, for storing keys outside the environment."""
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Generate Pulse gateway API keys")
    parser.add_argument("environment", nargs="?", default="dev", help="key prefix, e.g. prod, staging, dev")
    parser.add_argument("count", nargs="?", type=int, default=1, help="number of keys to generate")
    args = parser.parse_args(argv)

    if not re.fullmatch(r"[a-z0-9]+", args.environment):
        parser.error("environment must be lowercase letters and digits")
    if args.count < 1:
        parser.error("count must be at least 1")

    keys = generate_api_keys(args.count, args.environment)
    print(f"\nGenerating {args.count} API key(s) for {args.environment} environment:\n")
    for index, key in enumerate(keys, start=1):
        print(f"{index}. {key}")
    print("\nAdd these to your .env file:")
    print(f"PULSE_API_KEYS={','.join(keys)}\n")
    print("Hashed versions (for database storage):")
    for key in keys:
        print(f"   {hash_api_key(key)}")


if __name__ == "__main__":
    main()
