"""Salt generation for checksum digests."""

from __future__ import annotations

import secrets

SALT_ALPHABET = "9876543210ZYXWVUTSRQPONMLKJIHGFEDCBAabcdefghijklmnopqrstuvwxyz!@#$&_"
SALT_LENGTH = 4


def generate_salt(length: int = SALT_LENGTH) -> str:
    """Draw a fresh salt; every signing call must use its own."""
    if length <= 0:
        raise ValueError(f"Salt length must be positive, got {length}")
    return "".join(secrets.choice(SALT_ALPHABET) for _ in range(length))
