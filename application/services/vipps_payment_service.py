"""
Application service orchestrating Vipps payment use-cases.

For every lifecycle event it loads and checks the order, resolves the Vipps
credentials from the host's payment method, builds the provider payload and
calls the gateway. The gateway is built per call by an injected factory, so
this module never imports infrastructure.
"""
from __future__ import annotations

import hashlib
import json
from typing import Any, Callable, Optional

from application.dtos.payments import PaymentStatus
from application.dtos.vipps import (
    AdditionalData,
    CustomerInfo,
    InitiatePaymentCommand,
    MerchantInfo,
    PaymentActionsRequest,
    Transaction,
    VippsConfig,
)
from application.ports.orders import ActiveOrderService, EntityHydrator
from application.ports.payment_gateway import VippsGateway
from application.ports.payment_methods import PaymentMethodService
from core.logging_config import get_logger
from core.settings import VippsSettings, vipps_settings
from domain.common.context import RequestContext
from domain.common.exceptions import (
    BusinessException,
    EmptyOrderException,
    HandlerNotConfiguredException,
    MissingConfigArgumentException,
    MissingCustomerException,
    MissingShippingMethodException,
    NoActiveOrderException,
)
from domain.order.entity import Order
from shared.codes.payment_codes import PROVIDER_STATUS_TO_INTERNAL, PaymentCode


logger = get_logger(__name__)

ClientFactory = Callable[[VippsConfig], VippsGateway]

# (payment method argument name, VippsConfig field), checked in this order
REQUIRED_ARGS: tuple[tuple[str, str], ...] = (
    ("host", "host"),
    ("apiHost", "api_host"),
    ("merchantSerialNumber", "merchant_serial_number"),
    ("clientId", "client_id"),
    ("clientSecret", "client_secret"),
    ("subscriptionKey", "subscription_key"),
)

ORDER_RELATIONS = ("lines", "customer", "shippingLines")


def _idempotency_key(operation: str, order: Order, amount: int, payload: Optional[dict[str, Any]] = None) -> str:
    # Stable across caller retries of the same action on the same order; a changed
    # payload (e.g. a corrected phone number) must not replay a cached rejection
    base = f"{operation}|{order.provider_order_id}|{amount}"
    if payload is not None:
        base += "|" + hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()
    return hashlib.sha256(base.encode("utf-8")).hexdigest()


class VippsPaymentService:
    def __init__(
        self,
        active_orders: ActiveOrderService,
        hydrator: EntityHydrator,
        payment_methods: PaymentMethodService,
        *,
        client_factory: ClientFactory,
        settings: Optional[VippsSettings] = None,
    ) -> None:
        self.active_orders = active_orders
        self.hydrator = hydrator
        self.payment_methods = payment_methods
        self.client_factory = client_factory
        self.settings = settings or vipps_settings

    async def create_payment_intent(self, ctx: RequestContext) -> str:
        """Initiate a Vipps payment for the session's active order.

        Returns the redirect url handed out by Vipps. Order and configuration
        problems raise before any request is sent.
        """
        order = await self._get_active_order(ctx)
        hydrated = await self.hydrator.hydrate(ctx, order, relations=ORDER_RELATIONS)
        order = hydrated or order
        self._validate_order(order)

        config = await self.resolve_config(ctx)
        command = self._build_initiate_command(ctx, order, config)
        key = self._key("create", order, order.total_with_tax, command.to_wire())
        logger.info(
            "vipps_payment_intent_request",
            order_code=order.code,
            amount=order.total_with_tax,
            idempotency_key=key,
        )
        async with self.client_factory(config) as client:
            result = await client.create_payment(command, idempotency_key=key)

        url = result.get("url") if isinstance(result, dict) else None
        if not url:
            logger.error("vipps_payment_intent_missing_url", order_code=order.code)
            raise BusinessException(
                code=PaymentCode.PROVIDER_ERROR,
                message="Vipps response did not contain a redirect url",
                error_type="PaymentProviderError",
                details={"order_code": order.code},
            )
        logger.info("vipps_payment_intent_created", order_code=order.code)
        return url

    async def settle_payment(self, ctx: RequestContext) -> None:
        """Capture the reserved amount for the session's active order."""
        config = await self.resolve_config(ctx)
        order = await self._get_active_order(ctx)
        request = self._build_actions_request(order, config)
        async with self.client_factory(config) as client:
            await client.capture_payment(request, idempotency_key=self._key("capture", order, order.total_with_tax))
        logger.info("vipps_payment_settled", order_code=order.code, amount=order.total_with_tax)

    async def create_refund(self, ctx: RequestContext, order: Optional[Order]) -> dict[str, Any]:
        """Refund the order total and return the raw Vipps body for the caller to map."""
        config = await self.resolve_config(ctx)
        if order is None:
            raise NoActiveOrderException()
        request = self._build_actions_request(order, config)
        async with self.client_factory(config) as client:
            result = await client.refund_payment(request, idempotency_key=self._key("refund", order, order.total_with_tax))
        logger.info("vipps_payment_refunded", order_code=order.code, amount=order.total_with_tax)
        return result

    async def cancel_payment(
        self, ctx: RequestContext, order: Optional[Order], *, release_remaining_funds: bool = False
    ) -> dict[str, Any]:
        config = await self.resolve_config(ctx)
        if order is None:
            raise NoActiveOrderException()
        request = self._build_actions_request(order, config)
        if release_remaining_funds:
            request.should_release_remaining_funds = True
        async with self.client_factory(config) as client:
            result = await client.cancel_order(request, idempotency_key=self._key("cancel", order, order.total_with_tax))
        logger.info("vipps_payment_canceled", order_code=order.code)
        return result

    async def get_payment_status(self, ctx: RequestContext, order: Optional[Order]) -> PaymentStatus:
        """Query order details and reduce them to the latest successful operation."""
        config = await self.resolve_config(ctx)
        if order is None:
            raise NoActiveOrderException()
        request = self._build_actions_request(order, config)
        async with self.client_factory(config) as client:
            details = await client.query_order_details(request)
        return self._to_payment_status(order, details)

    async def request_access_token(self, ctx: RequestContext) -> dict[str, Any]:
        config = await self.resolve_config(ctx)
        async with self.client_factory(config) as client:
            return await client.request_access_token()

    async def resolve_config(self, ctx: RequestContext) -> VippsConfig:
        """Find the Vipps payment method and read its arguments, failing on the first missing one."""
        handler_code = self.settings.handler_code
        methods = await self.payment_methods.find_all(ctx)
        method = next((m for m in methods if m.handler.code == handler_code), None)
        if method is None:
            logger.error("vipps_handler_not_configured", handler_code=handler_code)
            raise HandlerNotConfiguredException(handler_code)

        values: dict[str, str] = {}
        for arg_name, field_name in REQUIRED_ARGS:
            arg = method.handler.get_arg(arg_name)
            if arg is None or not (arg.value or "").strip():
                logger.error(
                    "vipps_config_argument_missing",
                    method_code=method.code,
                    argument=arg_name,
                )
                raise MissingConfigArgumentException(arg_name, method_code=method.code)
            values[field_name] = arg.value.strip()
        return VippsConfig(**values, method_code=method.code)

    # Helpers
    async def _get_active_order(self, ctx: RequestContext) -> Order:
        order = await self.active_orders.get_order_from_context(ctx)
        if order is None:
            raise NoActiveOrderException()
        return order

    @staticmethod
    def _validate_order(order: Order) -> None:
        if not order.lines:
            raise EmptyOrderException(order.code)
        if order.customer is None:
            raise MissingCustomerException(order.code)
        if not order.shipping_lines:
            raise MissingShippingMethodException(order.code)

    def _key(
        self, operation: str, order: Order, amount: int, payload: Optional[dict[str, Any]] = None
    ) -> Optional[str]:
        if not self.settings.send_idempotency_key:
            return None
        return _idempotency_key(operation, order, amount, payload)

    def _build_initiate_command(
        self, ctx: RequestContext, order: Order, config: VippsConfig
    ) -> InitiatePaymentCommand:
        host = config.host.rstrip("/")
        paths = self.settings.paths
        return InitiatePaymentCommand(
            customer_info=CustomerInfo(mobile_number=order.customer.phone_number if order.customer else None),
            merchant_info=MerchantInfo(
                auth_token="",
                callback_prefix=host + paths.callback,
                fall_back=host + paths.fallback.format(order_code=order.code),
                consent_removal_prefix=host + paths.consent_removal,
                is_app=False,
                merchant_serial_number=config.merchant_serial_number,
                payment_type=self.settings.payment_type,
                static_shipping_details=[],
            ),
            transaction=Transaction(
                amount=order.total_with_tax,
                order_id=order.provider_order_id,
                skip_landing_page=False,
                scope=self.settings.scope,
                use_explicit_checkout_flow=True,
                additional_data=AdditionalData(
                    order_code=order.code,
                    channel_token=ctx.channel.token,
                ),
            ),
        )

    @staticmethod
    def _build_actions_request(order: Order, config: VippsConfig) -> PaymentActionsRequest:
        return PaymentActionsRequest(
            merchant_info=MerchantInfo(merchant_serial_number=config.merchant_serial_number),
            transaction=Transaction(amount=order.total_with_tax, order_id=order.provider_order_id),
        )

    @staticmethod
    def _to_payment_status(order: Order, details: Any) -> PaymentStatus:
        if not isinstance(details, dict):
            logger.error("vipps_order_details_unexpected", order_code=order.code, body_type=type(details).__name__)
            raise BusinessException(
                code=PaymentCode.PROVIDER_ERROR,
                message="Unexpected order details body",
                error_type="PaymentProviderError",
                details={"order_code": order.code},
            )
        mapping = PROVIDER_STATUS_TO_INTERNAL["vipps"]
        history = [
            entry for entry in (details.get("transactionLogHistory") or [])
            if isinstance(entry, dict) and entry.get("operationSuccess", True)
        ]
        if history:
            latest = max(history, key=lambda entry: entry.get("timeStamp") or "")
            operation = str(latest.get("operation") or "")
            amount = latest.get("amount")
            transaction_id = latest.get("transactionId")
        else:
            info = details.get("transactionInfo")
            info = info if isinstance(info, dict) else {}
            operation = str(info.get("status") or "")
            amount = info.get("amount")
            transaction_id = info.get("transactionId")
        return PaymentStatus(
            order_id=str(details.get("orderId") or order.provider_order_id),
            status=mapping.get(operation.upper(), "unknown") if operation else "unknown",
            provider_operation=operation or None,
            amount=amount,
            transaction_id=str(transaction_id) if transaction_id is not None else None,
            raw=details,
        )
