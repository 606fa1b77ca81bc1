"""
BAS Payment SDK - Transaction response validation

Decides whether a decoded gateway transaction response is authentic:
- declared success (status=1, code="1111") must carry a valid signature
- declared failure (status=0) is passed through
- anything else is rejected
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

import structlog

from bas_payment.core.canonical import to_text
from bas_payment.exceptions import (
    MalformedResponseError,
    SignatureVerificationError,
    UnexpectedResponseError,
)
from bas_payment.logging import mask_sensitive
from bas_payment.services.signature import SignatureService

logger = structlog.get_logger(__name__)

STATUS_SUCCESS = 1
STATUS_FAILURE = 0
CODE_SUCCESS = "1111"

SIGNED_FIELDS: Sequence[tuple[str, ...]] = (
    ("body", "trxToken"),
    ("body", "trxStatus"),
    ("body", "order", "orderId"),
)
SIGNATURE_PATH = ("head", "signature")


def _lookup(data: Any, path: Sequence[str]) -> Optional[Any]:
    """Walk nested mappings; None when any step is missing or null."""
    for key in path:
        if not isinstance(data, Mapping):
            return None
        data = data.get(key)
        if data is None:
            return None
    return data


def _is_int(value: Any, expected: int) -> bool:
    # bool is an int subclass, True must not pass for 1
    return type(value) is int and value == expected


def _snapshot(response: Any) -> Any:
    if isinstance(response, Mapping):
        return mask_sensitive(dict(response))
    return repr(response)[:500]


class ResponseValidator:
    """Accept or reject gateway transaction responses."""

    def __init__(self, signature_service: SignatureService) -> None:
        self.signature_service = signature_service

    def is_declared_success(self, response: Mapping[str, Any]) -> bool:
        return _is_int(response.get("status"), STATUS_SUCCESS) and response.get("code") == CODE_SUCCESS

    def is_declared_failure(self, response: Mapping[str, Any]) -> bool:
        return _is_int(response.get("status"), STATUS_FAILURE)

    def validate(self, response: Mapping[str, Any]) -> Mapping[str, Any]:
        """
        Validate a transaction response and return it unchanged.

        Raises:
            MalformedResponseError: success response lacks signed fields
            SignatureVerificationError: signature does not match
            UnexpectedResponseError: neither success nor failure
        """
        if not isinstance(response, Mapping):
            raise UnexpectedResponseError(
                "Transaction failed",
                context={"response": _snapshot(response)},
            )

        if self.is_declared_success(response):
            missing = [
                ".".join(path)
                for path in (*SIGNED_FIELDS, SIGNATURE_PATH)
                if _lookup(response, path) is None
            ]
            if missing:
                raise MalformedResponseError(
                    "Invalid transaction response structure",
                    context={"missing": missing, "response": _snapshot(response)},
                )

            payload = "".join(to_text(_lookup(response, path)) for path in SIGNED_FIELDS)
            signature = _lookup(response, SIGNATURE_PATH)
            if self.signature_service.verify_signature(payload, signature):
                return response

            order_id = _lookup(response, ("body", "order", "orderId"))
            logger.warning("response_signature_invalid", order_id=order_id)
            raise SignatureVerificationError(
                "Signature verification failed for transaction response",
                context={"order_id": order_id},
            )

        if self.is_declared_failure(response):
            logger.info(
                "transaction_declined",
                code=response.get("code"),
                message=response.get("message"),
            )
            return response

        raise UnexpectedResponseError(
            "Transaction failed",
            context={
                "status": response.get("status"),
                "code": response.get("code"),
                "response": _snapshot(response),
            },
        )
