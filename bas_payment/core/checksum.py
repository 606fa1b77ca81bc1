"""Salted SHA-256 digest.

Layout (fixed by the gateway): ``sha256_hex(canonical + "|" + salt) + salt``,
i.e. 64 hex characters followed by the clear salt.
"""

from __future__ import annotations

import hashlib

from bas_payment.core.canonical import FIELD_SEPARATOR
from bas_payment.core.salt import SALT_LENGTH


def calculate_digest(canonical: str, salt: str) -> str:
    payload = f"{canonical}{FIELD_SEPARATOR}{salt}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest() + salt


def split_digest(digest: str, salt_length: int = SALT_LENGTH) -> tuple[str, str]:
    """Split a digest into its hex hash and trailing salt.

    A digest shorter than the salt comes back as ("", digest).
    """
    return digest[:-salt_length], digest[-salt_length:]
