"""Checksum primitives: canonicalization, salt, digest and AES cipher."""

from bas_payment.core.canonical import FIELD_SEPARATOR, canonicalize, to_text
from bas_payment.core.checksum import calculate_digest, split_digest
from bas_payment.core.cipher import AESCipher, derive_key
from bas_payment.core.salt import SALT_ALPHABET, SALT_LENGTH, generate_salt

__all__ = [
    "FIELD_SEPARATOR",
    "canonicalize",
    "to_text",
    "calculate_digest",
    "split_digest",
    "AESCipher",
    "derive_key",
    "SALT_ALPHABET",
    "SALT_LENGTH",
    "generate_salt",
]
