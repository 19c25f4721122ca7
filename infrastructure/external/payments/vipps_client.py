"""
Vipps eCommerce v2 adapter over httpx.

Endpoints used:
- POST /accessToken/get
- POST /ecomm/v2/payments
- POST /ecomm/v2/payments/{orderId}/capture
- PUT  /ecomm/v2/payments/{orderId}/cancel
- GET  /ecomm/v2/payments/{orderId}/details
- POST /ecomm/v2/payments/{orderId}/refund

A response can fail on two channels: the HTTP layer (network error or non-2xx
status, raised as PaymentTransportError) or the body itself carrying an
`error` object, which is a PaymentProviderError even on HTTP 200.
"""
from __future__ import annotations

from typing import Any, Literal, Optional
from urllib.parse import quote

import httpx

from application.dtos.vipps import InitiatePaymentCommand, PaymentActionsRequest
from infrastructure.external.payments.base import BasePaymentClient
from infrastructure.external.payments.exceptions import (
    PaymentProviderError,
    PaymentTransportError,
)
from core.logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_HOST = "https://api.vipps.no"
DEFAULT_API_VERSION = "2021-12-14"
PAYMENTS_PATH = "/ecomm/v2/payments"
ACCESS_TOKEN_PATH = "/accessToken/get"

SUBSCRIPTION_KEY_HEADER = "Ocp-Apim-Subscription-Key"
MERCHANT_SERIAL_NUMBER_HEADER = "Merchant-Serial-Number"
IDEMPOTENCY_HEADER = "X-Request-Id"


def normalize_host(host: str) -> str:
    host = host.strip().rstrip("/")
    if "://" not in host:
        host = f"https://{host}"
    return host


class VippsClient(BasePaymentClient):
    provider = "vipps"

    def __init__(
        self,
        subscription_key: str,
        *,
        host: Optional[str] = None,
        merchant_serial_number: Optional[str] = None,
        api_version: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        merchant_serial_header_source: Literal["merchant_serial_number", "subscription_key"] = "merchant_serial_number",
        timeouts: Optional[dict[str, float]] = None,
        retry: Optional[dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not subscription_key:
            raise ValueError("subscription_key is required")
        self.subscription_key = subscription_key
        self.merchant_serial_number = merchant_serial_number
        self.api_version = api_version or DEFAULT_API_VERSION
        self._client_id = client_id
        self._client_secret = client_secret

        if merchant_serial_header_source == "subscription_key" or not merchant_serial_number:
            msn_header = subscription_key
        else:
            msn_header = merchant_serial_number

        super().__init__(
            base_url=normalize_host(host or DEFAULT_HOST),
            headers={
                "Content-Type": "application/json",
                SUBSCRIPTION_KEY_HEADER: subscription_key,
                MERCHANT_SERIAL_NUMBER_HEADER: msn_header,
            },
            timeouts=timeouts,
            retry=retry,
            transport=transport,
        )

    async def request_access_token(self) -> dict[str, Any]:
        """Request an access token; the payload is returned as-is."""
        headers = {}
        if self._client_id:
            headers["client_id"] = self._client_id
        if self._client_secret:
            headers["client_secret"] = self._client_secret
        return await self._call("request_access_token", "POST", ACCESS_TOKEN_PATH, headers=headers)

    async def create_payment(
        self, command: InitiatePaymentCommand, *, idempotency_key: Optional[str] = None
    ) -> dict[str, Any]:
        """Initiate a payment. The response carries `orderId` and the redirect `url`."""
        return await self._call(
            "create_payment",
            "POST",
            PAYMENTS_PATH,
            body=command.to_wire(),
            idempotency_key=idempotency_key,
        )

    async def capture_payment(
        self, request: PaymentActionsRequest, *, idempotency_key: Optional[str] = None
    ) -> dict[str, Any]:
        """Capture a reserved payment; amount 0 captures the full reservation."""
        return await self._call(
            "capture_payment",
            "POST",
            self._order_path(request, "capture"),
            body=request.to_wire(),
            idempotency_key=idempotency_key,
        )

    async def cancel_order(
        self, request: PaymentActionsRequest, *, idempotency_key: Optional[str] = None
    ) -> dict[str, Any]:
        return await self._call(
            "cancel_order",
            "PUT",
            self._order_path(request, "cancel"),
            body=request.to_wire(),
            idempotency_key=idempotency_key,
        )

    async def query_order_details(self, request: PaymentActionsRequest) -> dict[str, Any]:
        return await self._call("query_order_details", "GET", self._order_path(request, "details"))

    async def refund_payment(
        self, request: PaymentActionsRequest, *, idempotency_key: Optional[str] = None
    ) -> dict[str, Any]:
        """Refund an already captured payment."""
        return await self._call(
            "refund_payment",
            "POST",
            self._order_path(request, "refund"),
            body=request.to_wire(),
            idempotency_key=idempotency_key,
        )

    def validate_response(self, data: Any) -> Any:
        """Raise PaymentProviderError when the body reports an error, else return it unchanged."""
        if not isinstance(data, dict) or "error" not in data:
            return data
        error = data["error"]
        # An empty object or list still reports a failure; only null/false/""/0 do not
        if isinstance(error, (dict, list)) or error:
            first = error[0] if isinstance(error, list) and error else error
            if isinstance(first, dict):
                message = first.get("message") or first.get("errorMessage") or "Vipps call failed"
                provider_code = first.get("code") or first.get("errorCode")
            elif isinstance(error, list):
                message, provider_code = "Vipps call failed", None
            else:
                message, provider_code = str(error), None
            logger.error("vipps_call_failed", provider=self.provider, error=message, provider_code=provider_code)
            raise PaymentProviderError(
                message,
                provider=self.provider,
                provider_code=str(provider_code) if provider_code is not None else None,
            )
        return data

    # Helpers
    def _order_path(self, request: PaymentActionsRequest, action: str) -> str:
        order_id = request.transaction.order_id
        if not order_id:
            raise ValueError(f"transaction.order_id is required for {action}")
        return f"{PAYMENTS_PATH}/{quote(order_id, safe='')}/{action}"

    async def _call(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        body: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        idempotency_key: Optional[str] = None,
    ) -> Any:
        request_headers = dict(headers or {})
        if idempotency_key:
            request_headers[IDEMPOTENCY_HEADER] = idempotency_key

        async def _send() -> httpx.Response:
            async with self.client() as http:
                response = await http.request(method, path, json=body, headers=request_headers)
                response.raise_for_status()
                return response

        self._log("vipps_request", operation=operation, method=method, path=path, api_version=self.api_version)
        try:
            response = await self._retry(_send)
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            logger.error(
                "vipps_transport_failed",
                provider=self.provider,
                operation=operation,
                status_code=status_code,
            )
            raise PaymentTransportError(
                f"Vipps responded with {status_code}",
                provider=self.provider,
                status_code=status_code,
                details={"body": exc.response.text[:500]},
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("vipps_transport_failed", provider=self.provider, operation=operation, error=str(exc))
            raise PaymentTransportError(str(exc) or exc.__class__.__name__, provider=self.provider) from exc

        data = self._parse(response)
        self._log("vipps_response", operation=operation, status_code=response.status_code)
        return self.validate_response(data)

    def _parse(self, response: httpx.Response) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise PaymentProviderError(
                "Vipps returned a non-JSON body",
                provider=self.provider,
                details={"status_code": response.status_code},
            ) from exc
