from .signature import CHECKSUM_FIELD, SignatureService
from .validator import ResponseValidator
from .payment import PaymentService

__all__ = [
    "CHECKSUM_FIELD",
    "SignatureService",
    "ResponseValidator",
    "PaymentService",
]
