"""AES-256-CBC encryption of checksum digests.

Key derivation follows the gateway: the merchant key is HTML-entity decoded
(keys were historically stored entity-encoded), hashed with SHA-256, and the
raw 32-byte digest is the AES key. Ciphertext travels base64 encoded.
"""

from __future__ import annotations

import base64
import hashlib
import html

from Crypto.Cipher import AES
from Crypto.Util.Padding import pad, unpad

from bas_payment.exceptions import EncryptionError

KEY_SIZE = 32


def derive_key(merchant_key: str) -> bytes:
    """Derive the AES-256 key from the merchant key."""
    decoded = html.unescape(merchant_key)
    return hashlib.sha256(decoded.encode("utf-8")).digest()[:KEY_SIZE]


class AESCipher:
    """AES-256-CBC with a fixed, merchant-wide IV.

    Instances hold only immutable key material and build a fresh cipher
    object per call, so one instance can be shared across threads.
    """

    def __init__(self, merchant_key: str, iv: str) -> None:
        self._key = derive_key(merchant_key)
        self._iv = iv.encode("utf-8")

    def _new(self):
        return AES.new(self._key, AES.MODE_CBC, iv=self._iv)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt text and return base64 of the raw ciphertext.

        Raises:
            EncryptionError: If the AES engine rejects the input.
        """
        try:
            data = self._new().encrypt(pad(plaintext.encode("utf-8"), AES.block_size))
        except (ValueError, TypeError) as e:
            raise EncryptionError(f"Encryption failed: {e}", original_error=e) from e
        return base64.b64encode(data).decode("ascii")

    def decrypt(self, checksum: str) -> str:
        """Decode and decrypt a base64 checksum back to its plaintext.

        Raises:
            EncryptionError: On invalid base64, block size, padding or
                non UTF-8 plaintext. Partial plaintext is never returned.
        """
        try:
            raw = base64.b64decode(checksum, validate=True)
            plaintext = unpad(self._new().decrypt(raw), AES.block_size)
            return plaintext.decode("utf-8")
        except (ValueError, TypeError) as e:
            raise EncryptionError(
                f"Decryption failed: {e}",
                context={"checksum_length": len(checksum) if isinstance(checksum, str) else None},
                original_error=e,
            ) from e
