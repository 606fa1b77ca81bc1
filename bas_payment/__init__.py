"""
BAS Payment SDK
Checksum signing and response validation for the BAS payment gateway
"""

__version__ = "1.0.0"

from bas_payment.config import Config
from bas_payment.exceptions import (
    ApiError,
    BasPaymentError,
    ConfigurationError,
    EncryptionError,
    InvalidInputError,
    MalformedResponseError,
    SignatureVerificationError,
    UnexpectedResponseError,
)
from bas_payment.logging import configure_logging_from_config
from bas_payment.services import PaymentService, ResponseValidator, SignatureService

__all__ = [
    "__version__",
    "Config",
    "configure_logging_from_config",
    "SignatureService",
    "ResponseValidator",
    "PaymentService",
    "BasPaymentError",
    "ConfigurationError",
    "InvalidInputError",
    "ApiError",
    "MalformedResponseError",
    "UnexpectedResponseError",
    "SignatureVerificationError",
    "EncryptionError",
]
