"""Exception hierarchy for the BAS payment SDK."""

from __future__ import annotations

from typing import Any, Mapping


class BasPaymentError(Exception):
    """Base exception for all BAS payment errors.

    Every error carries a stable numeric ``error_code`` and a structured
    ``context`` payload so callers can diagnose failures without re-running.
    """

    error_code: int = 0
    prefix: str = "BAS Payment Error"

    def __init__(
        self,
        message: str = "An error occurred in the BAS payment SDK",
        context: Mapping[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.context: dict[str, Any] = dict(context or {})
        super().__init__(f"{self.prefix}: {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a serializable error payload."""
        return {
            "error_code": self.error_code,
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConfigurationError(BasPaymentError):
    """Missing or invalid SDK configuration (merchant key, IV, credentials)."""

    error_code = 1001
    prefix = "Configuration Error"


class InvalidInputError(BasPaymentError, TypeError):
    """Caller passed an unsupported value to a public SDK method."""

    error_code = 1002
    prefix = "Invalid Input"


class ApiError(BasPaymentError):
    """Gateway communication failed or returned an unusable reply."""

    error_code = 2001
    prefix = "API Error"


class MalformedResponseError(ApiError):
    """A declared-success response is missing fields required to authenticate it."""


class UnexpectedResponseError(ApiError):
    """Response is neither a declared success nor a declared failure."""


class SignatureVerificationError(BasPaymentError):
    """Signature on a gateway response did not verify.

    Treated as a security event: the response must never be accepted.
    """

    error_code = 3001
    prefix = "Security Error"

    def __init__(
        self,
        message: str = "Signature verification failed",
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)


class EncryptionError(BasPaymentError):
    """AES engine failure during encryption or decryption."""

    error_code = 3002
    prefix = "Encryption Error"

    def __init__(
        self,
        message: str = "Cipher failure",
        context: Mapping[str, Any] | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.original_error = original_error
        super().__init__(message, context)


__all__ = [
    "BasPaymentError",
    "ConfigurationError",
    "InvalidInputError",
    "ApiError",
    "MalformedResponseError",
    "UnexpectedResponseError",
    "SignatureVerificationError",
    "EncryptionError",
]
