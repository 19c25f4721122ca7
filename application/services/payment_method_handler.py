"""
Host-facing payment method handler for Vipps.

The host calls these hooks from its payment state machine. The handler holds
a reference to the orchestrator it was built with; there is no module level
service instance.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from application.dtos.payments import CreatePaymentResult, CreateRefundResult, SettlePaymentResult
from application.services.vipps_payment_service import VippsPaymentService
from core.logging_config import get_logger
from domain.common.context import RequestContext
from domain.common.exceptions import BusinessException, UnauthorizedApiTypeException
from domain.order.entity import Order
from domain.payment.entity import Payment, PaymentState


logger = get_logger(__name__)


@dataclass(frozen=True)
class LocalizedString:
    language_code: str
    value: str


@dataclass(frozen=True)
class ConfigArgDefinition:
    type: str
    label: tuple[LocalizedString, ...]
    default_value: Optional[str] = None


class VippsPaymentMethodHandler:
    code = "vipps"
    description = (
        LocalizedString("en", "Vipps payment"),
        LocalizedString("nb", "Vipps betaling"),
    )
    args: dict[str, ConfigArgDefinition] = {
        "host": ConfigArgDefinition("string", (LocalizedString("en", "Shop API host"),), default_value="ww.vipps.no"),
        "apiHost": ConfigArgDefinition("string", (LocalizedString("en", "Vipps API Host"),), default_value="api.vipps.no"),
        "merchantSerialNumber": ConfigArgDefinition("string", (LocalizedString("en", "Merchant Serial Number"),)),
        "clientId": ConfigArgDefinition("string", (LocalizedString("en", "Client id"),)),
        "clientSecret": ConfigArgDefinition("string", (LocalizedString("en", "Client secret"),)),
        "subscriptionKey": ConfigArgDefinition("string", (LocalizedString("en", "Subscription Key"),)),
    }

    def __init__(self, service: Optional[VippsPaymentService] = None) -> None:
        self.service = service

    async def create_payment(
        self,
        ctx: RequestContext,
        order: Order,
        amount: int,
        args: dict[str, Any],
        metadata: dict[str, Any],
    ) -> CreatePaymentResult:
        # Creating a payment settles it immediately, so only admin and internal calls may do it
        if not ctx.is_admin:
            raise UnauthorizedApiTypeException(ctx.api_type_value)
        return CreatePaymentResult(
            amount=amount,
            state=PaymentState.SETTLED,
            transaction_id=metadata.get("paymentId"),
            metadata=metadata,
        )

    async def settle_payment(
        self,
        ctx: RequestContext,
        order: Order,
        payment: Payment,
        args: Optional[dict[str, Any]] = None,
    ) -> SettlePaymentResult:
        return SettlePaymentResult(success=True)

    async def create_refund(
        self,
        ctx: RequestContext,
        input: Any,
        amount: int,
        order: Optional[Order],
        payment: Payment,
        args: Optional[dict[str, Any]] = None,
    ) -> CreateRefundResult:
        """Refund through Vipps.

        A provider or order problem becomes Failed; Error means the handler was
        built without an orchestrator and never reached Vipps.
        """
        if self.service is None:
            logger.error("vipps_refund_without_service", payment_id=payment.id)
            return CreateRefundResult(state=PaymentState.ERROR)
        try:
            result = await self.service.create_refund(ctx, order)
        except BusinessException as exc:
            logger.error(
                "vipps_refund_failed",
                payment_id=payment.id,
                error_type=exc.error_type,
                error=exc.message,
            )
            return CreateRefundResult(state=PaymentState.FAILED, metadata={"error": exc.message})

        if isinstance(result, dict) and result.get("transaction"):
            return CreateRefundResult(state=PaymentState.SETTLED, transaction_id=payment.transaction_id)
        logger.warning("vipps_refund_not_confirmed", payment_id=payment.id)
        return CreateRefundResult(state=PaymentState.FAILED)
