"""
Tests for Payment Service (BAS gateway client)

Covers:
- Construction and header setup
- call_api transport behaviour (token, form/json, errors)
- initiate_transaction / check_transaction_status signing and validation
- refund
"""
import json
from dataclasses import replace
from urllib.parse import parse_qs

import httpx
import pytest

from bas_payment.exceptions import (
    ApiError,
    ConfigurationError,
    InvalidInputError,
    SignatureVerificationError,
    UnexpectedResponseError,
)
from bas_payment.services.payment import PaymentService, encode_body, sanitize_headers

TOKEN_PATH = "/api/v1/auth/token"
INITIATE_PATH = "/api/v1/merchant/sdk-payment/initiate-transaction"
STATUS_PATH = "/api/v1/merchant/sdk-payment/get-transaction-status"
REFUND_PATH = "/api/v1/merchant/sdk-payment/reverse-payment/execute"


def reply(status_code, **kwargs):
    """Handler building a new response for every request"""
    return lambda request: httpx.Response(status_code, **kwargs)


class GatewayStub:
    """Records requests and answers with canned responses per path"""

    def __init__(self, responses=None):
        self.requests = []
        self.responses = {TOKEN_PATH: reply(200, json={"access_token": "tok-1"})}
        self.responses.update(responses or {})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.responses.get(request.url.path, reply(404, text="not found"))
        return handler(request)

    def requests_to(self, path):
        return [r for r in self.requests if r.url.path == path]


def make_service(config, stub):
    client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
    return PaymentService(config, client=client)


def signed_success(signer, order_id="ORD-1", trx_token="TRX-001", trx_status="SUCCESS"):
    return {
        "status": 1,
        "code": "1111",
        "head": {"signature": signer.generate_signature(trx_token + trx_status + order_id)},
        "body": {
            "trxToken": trx_token,
            "trxStatus": trx_status,
            "order": {"orderId": order_id},
        },
    }


# ============== Construction Tests ==============

class TestPaymentServiceConfig:
    """Test PaymentService construction"""

    @pytest.mark.parametrize("field", ["client_id", "client_secret", "app_id", "base_url"])
    def test_missing_api_settings(self, config, field):
        broken = replace(config, **{field: None})
        with pytest.raises(ConfigurationError) as exc_info:
            PaymentService(broken)
        assert exc_info.value.context["field"] == field

    def test_missing_merchant_key(self, config):
        broken = replace(config, merchant_key="")
        with pytest.raises(ConfigurationError):
            PaymentService(broken)

    def test_headers(self, config):
        service = PaymentService(config, client=httpx.AsyncClient())
        assert service.headers["x-client-id"] == "client-123"
        assert service.headers["x-app-id"] == "app-789"
        assert service.headers["x-environment"] == "staging"
        assert service.headers["x-sdk-type"] == "Python"
        assert service.headers["x-sdk-version"]

    def test_sanitize_headers(self):
        headers = {"Authorization": "Bearer x", "x-client-id": "id", "x-sdk-type": "Python"}
        assert sanitize_headers(headers) == {
            "Authorization": "[REDACTED]",
            "x-client-id": "[REDACTED]",
            "x-sdk-type": "Python",
        }

    @pytest.mark.asyncio
    async def test_context_manager_closes_owned_client(self, config):
        async with PaymentService(config) as service:
            client = service.client
        assert client.is_closed

    @pytest.mark.asyncio
    async def test_external_client_left_open(self, config):
        client = httpx.AsyncClient()
        async with PaymentService(config, client=client):
            pass
        assert not client.is_closed
        await client.aclose()


# ============== Transport Tests ==============

class TestCallApi:
    """Test call_api request handling"""

    @pytest.mark.asyncio
    async def test_token_request_is_form(self, config):
        stub = GatewayStub()
        service = make_service(config, stub)

        token = await service.request_new_token()

        assert token == "tok-1"
        request = stub.requests_to(TOKEN_PATH)[0]
        assert request.method == "POST"
        assert "Authorization" not in request.headers
        form = parse_qs(request.content.decode())
        assert form == {
            "client_id": ["client-123"],
            "client_secret": ["client-secret-xyz"],
            "grant_type": ["client_credentials"],
        }

    @pytest.mark.asyncio
    async def test_bearer_token_added(self, config):
        stub = GatewayStub({REFUND_PATH: reply(200, json={"status": 1})})
        service = make_service(config, stub)

        await service.call_api(REFUND_PATH, {"a": 1})

        request = stub.requests_to(REFUND_PATH)[0]
        assert request.headers["Authorization"] == "Bearer tok-1"
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["x-app-id"] == "app-789"
        assert json.loads(request.content) == {"a": 1}

    @pytest.mark.asyncio
    async def test_fresh_token_per_call(self, config):
        stub = GatewayStub({REFUND_PATH: reply(200, json={})})
        service = make_service(config, stub)

        await service.call_api(REFUND_PATH, {})
        await service.call_api(REFUND_PATH, {})

        assert len(stub.requests_to(TOKEN_PATH)) == 2

    @pytest.mark.asyncio
    async def test_get_uses_query(self, config):
        stub = GatewayStub({"/ping": reply(200, json={"ok": True})})
        service = make_service(config, stub)

        result = await service.call_api("/ping", {"q": "1"}, token=False, method="get")

        assert result == {"ok": True}
        assert stub.requests[0].url.params["q"] == "1"

    @pytest.mark.asyncio
    async def test_invalid_method(self, config):
        service = make_service(config, GatewayStub())
        with pytest.raises(InvalidInputError):
            await service.call_api("/x", {}, method="TRACE")

    @pytest.mark.asyncio
    async def test_http_error(self, config):
        stub = GatewayStub({REFUND_PATH: reply(500, text="Internal error")})
        service = make_service(config, stub)

        with pytest.raises(ApiError) as exc_info:
            await service.call_api(REFUND_PATH, {})

        assert exc_info.value.context["status_code"] == 500
        assert "Internal error" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_http_error_not_retried(self, config):
        stub = GatewayStub({REFUND_PATH: reply(503, text="busy")})
        service = make_service(config, stub)

        with pytest.raises(ApiError):
            await service.call_api(REFUND_PATH, {})

        assert len(stub.requests_to(REFUND_PATH)) == 1

    @pytest.mark.asyncio
    async def test_connection_error(self, config):
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        stub = GatewayStub({REFUND_PATH: fail})
        service = make_service(config, stub)

        with pytest.raises(ApiError) as exc_info:
            await service.call_api(REFUND_PATH, {})

        assert "Connection failed" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_invalid_json(self, config):
        stub = GatewayStub({REFUND_PATH: reply(200, text="<html>")})
        service = make_service(config, stub)

        with pytest.raises(ApiError) as exc_info:
            await service.call_api(REFUND_PATH, {})

        assert "Invalid JSON" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_non_object_json(self, config):
        stub = GatewayStub({REFUND_PATH: reply(200, json=[1, 2])})
        service = make_service(config, stub)

        with pytest.raises(ApiError):
            await service.call_api(REFUND_PATH, {})

    @pytest.mark.asyncio
    async def test_missing_access_token(self, config):
        stub = GatewayStub({TOKEN_PATH: reply(200, json={"token_type": "bearer"})})
        service = make_service(config, stub)

        with pytest.raises(ApiError) as exc_info:
            await service.request_new_token()

        assert "access token" in exc_info.value.message


# ============== Transaction Tests ==============

class TestTransactions:
    """Test signed transaction calls"""

    @pytest.mark.asyncio
    async def test_initiate_signs_body(self, config, signer):
        stub = GatewayStub({INITIATE_PATH: reply(200, json=signed_success(signer))})
        service = make_service(config, stub)

        result = await service.initiate_transaction("ORD-1", 100.5, "YER")

        assert result["body"]["trxToken"] == "TRX-001"
        sent = json.loads(stub.requests_to(INITIATE_PATH)[0].content)
        body = sent["body"]
        assert body["amount"] == {"value": 100.5, "currency": "YER"}
        assert body["ordertype"] == "PayBill"
        assert body["orderId"] == "ORD-1"
        assert body["appId"] == "app-789"
        assert sent["head"]["requestTimestamp"] == body["requestTimestamp"]

        encoded = encode_body(body)
        assert signer.verify_signature(encoded, sent["head"]["signature"]) is True

    @pytest.mark.asyncio
    async def test_slash_in_order_id_signed_escaped(self, config, signer):
        """Signed string escapes slashes as \\/ like json_encode"""
        stub = GatewayStub({INITIATE_PATH: reply(200, json=signed_success(signer, order_id="INV/2024/1"))})
        service = make_service(config, stub)

        await service.initiate_transaction("INV/2024/1", 10, "YER")

        sent = json.loads(stub.requests_to(INITIATE_PATH)[0].content)
        assert sent["body"]["orderId"] == "INV/2024/1"
        body = sent["body"]
        signed = (
            '{"amount":{"value":10,"currency":"YER"},"ordertype":"PayBill",'
            '"orderId":"INV\\/2024\\/1","requestTimestamp":'
            f'{body["requestTimestamp"]},"appId":"app-789"}}'
        )
        assert signer.verify_signature(signed, sent["head"]["signature"]) is True

    @pytest.mark.asyncio
    async def test_status_signs_body(self, config, signer):
        stub = GatewayStub({STATUS_PATH: reply(200, json=signed_success(signer))})
        service = make_service(config, stub)

        await service.check_transaction_status("ORD-1")

        sent = json.loads(stub.requests_to(STATUS_PATH)[0].content)
        assert list(sent["body"]) == ["appId", "orderId", "requestTimestamp"]
        encoded = json.dumps(sent["body"], separators=(",", ":"))
        assert signer.verify_signature(encoded, sent["head"]["signature"]) is True

    @pytest.mark.asyncio
    async def test_declared_failure_returned(self, config):
        failure = {"status": 0, "code": "4004", "message": "Order not found"}
        stub = GatewayStub({STATUS_PATH: reply(200, json=failure)})
        service = make_service(config, stub)

        result = await service.check_transaction_status("ORD-404")

        assert result == failure

    @pytest.mark.asyncio
    async def test_forged_response_rejected(self, config, other_signer):
        stub = GatewayStub({STATUS_PATH: reply(200, json=signed_success(other_signer))})
        service = make_service(config, stub)

        with pytest.raises(SignatureVerificationError):
            await service.check_transaction_status("ORD-1")

    @pytest.mark.asyncio
    async def test_unexpected_response(self, config):
        stub = GatewayStub({INITIATE_PATH: reply(200, json={"status": 3})})
        service = make_service(config, stub)

        with pytest.raises(UnexpectedResponseError):
            await service.initiate_transaction("ORD-1", 10, "YER")

    @pytest.mark.asyncio
    async def test_refund(self, config):
        stub = GatewayStub({REFUND_PATH: reply(200, json={"status": "queued"})})
        service = make_service(config, stub)

        result = await service.refund("TRX-001")

        assert result == {"status": "queued"}
        sent = json.loads(stub.requests_to(REFUND_PATH)[0].content)
        assert sent == {"trxToken": "TRX-001", "reason": "Refund requested"}


class TestEncodeBody:
    """Test the JSON string that request checksums are computed over"""

    def test_compact(self):
        assert encode_body({"a": 1, "b": {"c": "d"}}) == '{"a":1,"b":{"c":"d"}}'

    def test_slashes_escaped(self):
        assert encode_body({"orderId": "INV/2024/1"}) == '{"orderId":"INV\\/2024\\/1"}'

    def test_backslash_then_slash(self):
        assert encode_body({"path": "a\\/b"}) == '{"path":"a\\\\\\/b"}'

    def test_unicode_escaped(self):
        assert encode_body({"desc": "دفع"}) == '{"desc":"\\u062f\\u0641\\u0639"}'
