"""
BAS Payment SDK - Signature Service
Generates and verifies the CHECKSUMHASH exchanged with the BAS gateway.

Checksum = base64(AES-256-CBC(sha256_hex(canonical|salt) + salt))
"""
from __future__ import annotations

import hmac
from typing import Mapping

import structlog

from bas_payment.config import DEFAULT_IV, Config, check_signing_params
from bas_payment.core.canonical import Params, canonicalize
from bas_payment.core.checksum import calculate_digest, split_digest
from bas_payment.core.cipher import AESCipher
from bas_payment.core.salt import generate_salt
from bas_payment.exceptions import EncryptionError

logger = structlog.get_logger(__name__)

CHECKSUM_FIELD = "CHECKSUMHASH"


class SignatureService:
    """Sign and verify gateway payloads with the merchant key.

    The merchant key and IV are fixed at construction; every other value is
    created per call, so a single instance is safe to share.
    """

    def __init__(self, merchant_key: str, iv: str = DEFAULT_IV) -> None:
        check_signing_params(merchant_key, iv)
        self._cipher = AESCipher(merchant_key, iv)

    @classmethod
    def from_config(cls, config: Config) -> "SignatureService":
        return cls(config.merchant_key, config.iv)

    def generate_signature(self, params: Params) -> str:
        """
        Generate a checksum for a field mapping or a pre-canonicalized string.

        Raises:
            InvalidInputError: params is neither str nor mapping
            EncryptionError: the cipher engine failed
        """
        canonical = canonicalize(params)
        digest = calculate_digest(canonical, generate_salt())
        return self._cipher.encrypt(digest)

    def verify_signature(self, params: Params, checksum: str) -> bool:
        """
        Verify a checksum against a field mapping or string.

        A CHECKSUMHASH entry in the mapping is ignored. Undecryptable
        checksums are reported as False, same as a mismatch.
        """
        if isinstance(params, Mapping) and CHECKSUM_FIELD in params:
            params = {k: v for k, v in params.items() if k != CHECKSUM_FIELD}
        canonical = canonicalize(params)

        if not isinstance(checksum, str):
            logger.debug("checksum_rejected", reason="not_a_string")
            return False

        try:
            digest = self._cipher.decrypt(checksum)
        except EncryptionError as e:
            logger.debug("checksum_rejected", reason="undecryptable", error=e.message)
            return False

        _, salt = split_digest(digest)
        expected = calculate_digest(canonical, salt)
        is_valid = hmac.compare_digest(digest.encode("utf-8"), expected.encode("utf-8"))
        if not is_valid:
            logger.debug("checksum_rejected", reason="digest_mismatch")
        return is_valid
