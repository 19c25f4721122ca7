"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
"""
from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from application.dtos.vipps import InitiatePaymentCommand, PaymentActionsRequest


@runtime_checkable
class VippsGateway(Protocol):
    """Gateway protocol for the Vipps eCommerce API.

    Every operation returns the validated response body or raises.
    Implementations are async context managers owning their HTTP session.
    """

    provider: str

    async def request_access_token(self) -> dict[str, Any]: ...

    async def create_payment(
        self, command: InitiatePaymentCommand, *, idempotency_key: Optional[str] = None
    ) -> dict[str, Any]: ...

    async def capture_payment(
        self, request: PaymentActionsRequest, *, idempotency_key: Optional[str] = None
    ) -> dict[str, Any]: ...

    async def cancel_order(
        self, request: PaymentActionsRequest, *, idempotency_key: Optional[str] = None
    ) -> dict[str, Any]: ...

    async def query_order_details(self, request: PaymentActionsRequest) -> dict[str, Any]: ...

    async def refund_payment(
        self, request: PaymentActionsRequest, *, idempotency_key: Optional[str] = None
    ) -> dict[str, Any]: ...

    async def __aenter__(self) -> "VippsGateway": ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
