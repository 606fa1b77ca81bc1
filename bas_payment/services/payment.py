"""
BAS Payment SDK - Payment Service
Async client for the BAS merchant SDK-payment API.

Requests carry a checksum of their JSON body in head.signature; transaction
replies are authenticated by ResponseValidator before they reach the caller.
"""
from __future__ import annotations

import json
import time
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Dict, Optional, Union

import httpx
import structlog

from bas_payment import __version__
from bas_payment.config import Config
from bas_payment.exceptions import ApiError, InvalidInputError
from bas_payment.logging import mask_sensitive
from bas_payment.services.signature import SignatureService
from bas_payment.services.validator import ResponseValidator

SDK_TYPE = "Python"
VALID_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")
SENSITIVE_HEADERS = ("authorization", "x-client-id", "x-app-id")
REDACTED = "[REDACTED]"


def get_sdk_version() -> str:
    """Installed distribution version, falling back to the package constant"""
    try:
        return version("bas-payment")
    except PackageNotFoundError:
        return __version__


def sanitize_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Copy of headers safe for logging"""
    return {
        key: REDACTED if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


def encode_body(body: Dict[str, Any]) -> str:
    """Compact JSON as the gateway signs it: ASCII only, slashes escaped"""
    return json.dumps(body, separators=(",", ":")).replace("/", "\\/")


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


class PaymentService:
    """BAS Payment API client"""

    def __init__(
        self,
        config: Config,
        signature_service: Optional[SignatureService] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        config.validate_api()
        self.config = config
        self.signature_service = signature_service or SignatureService.from_config(config)
        self.validator = ResponseValidator(self.signature_service)
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(config.timeout))
        self._owns_client = client is None
        self.logger = structlog.get_logger(__name__, service=self.__class__.__name__)

        self.headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "x-client-id": config.client_id,
            "x-app-id": config.app_id,
            "x-sdk-version": get_sdk_version(),
            "x-environment": config.environment,
            "correlationId": "",
            "x-sdk-type": SDK_TYPE,
        }

    async def close(self) -> None:
        """Close the HTTP client if owned by this service"""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "PaymentService":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ==================== Transport ====================

    async def call_api(
        self,
        endpoint: str,
        data: Dict[str, Any],
        as_form: bool = False,
        token: bool = True,
        method: str = "POST",
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Make an API call to the BAS gateway.

        Returns the decoded JSON object or raises ApiError.
        """
        method = method.upper()
        if method not in VALID_METHODS:
            raise InvalidInputError(f"Invalid HTTP method: {method}", context={"method": method})

        headers = dict(self.headers)
        if as_form:
            headers.pop("Content-Type", None)
        if token:
            access_token = await self.request_new_token()
            headers["Authorization"] = f"Bearer {access_token}"

        url = f"{self.config.base_url}{endpoint}"
        request_kwargs: Dict[str, Any] = {
            "headers": headers,
            "timeout": timeout if timeout is not None else self.config.timeout,
        }
        if method == "GET":
            request_kwargs["params"] = data
        elif as_form:
            request_kwargs["data"] = data
        else:
            request_kwargs["json"] = data

        self.logger.debug(
            "bas_api_request",
            endpoint=endpoint,
            method=method,
            url=url,
            headers=sanitize_headers(headers),
            body=mask_sensitive(data),
        )

        try:
            response = await self.client.request(method, url, **request_kwargs)
        except httpx.HTTPError as e:
            self.logger.error("bas_api_connection_failed", endpoint=endpoint, error=str(e))
            raise ApiError(f"Connection failed: {e}", context={"endpoint": endpoint}) from e

        if not response.is_success:
            self.logger.error(
                "bas_api_http_error",
                endpoint=endpoint,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise ApiError(
                f"[{response.status_code}]: {response.text[:500]}",
                context={"endpoint": endpoint, "status_code": response.status_code},
            )

        try:
            result = response.json()
        except ValueError as e:
            raise ApiError(
                "Invalid JSON response from API",
                context={"endpoint": endpoint, "body": response.text[:200]},
            ) from e

        if not isinstance(result, dict):
            raise ApiError("Invalid JSON response from API", context={"endpoint": endpoint})

        self.logger.debug(
            "bas_api_response",
            endpoint=endpoint,
            status_code=response.status_code,
            body=mask_sensitive(result),
        )
        return result

    async def request_new_token(self) -> str:
        """
        Request a new OAuth access token (client credentials grant).

        A fresh token is requested for every authenticated call.
        """
        body = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "grant_type": "client_credentials",
        }
        response = await self.call_api(self.config.token_endpoint, body, as_form=True, token=False)

        access_token = response.get("access_token")
        if not access_token:
            raise ApiError(
                "Failed to retrieve access token from response",
                context={"endpoint": self.config.token_endpoint},
            )
        return access_token

    # ==================== Public API Methods ====================

    def _signed_envelope(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Wrap a request body with its checksum"""
        encoded = encode_body(body)
        return {
            "head": {
                "signature": self.signature_service.generate_signature(encoded),
                "requestTimestamp": body["requestTimestamp"],
            },
            "body": body,
        }

    async def initiate_transaction(
        self,
        order_id: str,
        amount: Union[int, float],
        currency: str,
        order_type: str = "PayBill",
    ) -> Dict[str, Any]:
        """
        Initiate a new payment transaction.

        Returns the validated gateway response.
        """
        body = {
            "amount": {
                "value": amount,
                "currency": currency,
            },
            "ordertype": order_type,
            "orderId": order_id,
            "requestTimestamp": _timestamp_ms(),
            "appId": self.config.app_id,
        }

        response = await self.call_api(
            self.config.transaction_initiate_endpoint,
            self._signed_envelope(body),
        )
        self.logger.info("transaction_initiated", order_id=order_id, status=response.get("status"))
        return dict(self.validator.validate(response))

    async def check_transaction_status(self, order_id: str) -> Dict[str, Any]:
        """
        Check the status of a transaction.

        Returns the validated gateway response.
        """
        body = {
            "appId": self.config.app_id,
            "orderId": order_id,
            "requestTimestamp": _timestamp_ms(),
        }

        response = await self.call_api(
            self.config.transaction_status_endpoint,
            self._signed_envelope(body),
        )
        return dict(self.validator.validate(response))

    async def refund(self, trx_token: str, reason: str = "Refund requested") -> Dict[str, Any]:
        """Refund a payment transaction by its token"""
        body = {
            "trxToken": trx_token,
            "reason": reason,
        }
        return await self.call_api(self.config.refund_payment_endpoint, body)
