"""
Composition root for the Vipps adapter.

The host builds one VippsPlugin with its own collaborators and registers
`plugin.handler` with its payment options. The orchestrator is created once
here and passed by reference to the handler and the HTTP routes.
"""
from __future__ import annotations

from functools import partial
from typing import Optional

import httpx

from application.dtos.vipps import VippsConfig
from application.ports.orders import ActiveOrderService, EntityHydrator
from application.ports.payment_methods import PaymentMethodService
from application.services.payment_method_handler import VippsPaymentMethodHandler
from application.services.vipps_payment_service import VippsPaymentService
from core.logging_config import get_logger
from core.settings import VippsSettings, vipps_settings
from domain.common.context import RequestContext
from infrastructure.external.payments import build_vipps_client


logger = get_logger(__name__)


class VippsPlugin:
    def __init__(
        self,
        active_orders: ActiveOrderService,
        hydrator: EntityHydrator,
        payment_methods: PaymentMethodService,
        *,
        settings: Optional[VippsSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or vipps_settings
        self.service = VippsPaymentService(
            active_orders,
            hydrator,
            payment_methods,
            client_factory=partial(build_vipps_client, settings=self.settings, transport=transport),
            settings=self.settings,
        )
        self.handler = VippsPaymentMethodHandler(self.service)

    @property
    def payment_method_handlers(self) -> list[VippsPaymentMethodHandler]:
        return [self.handler]

    async def startup(self, ctx: RequestContext) -> VippsConfig:
        """Validate the payment method configuration once, at host startup.

        Raises the same configuration errors as a per-call resolution would.
        """
        config = await self.service.resolve_config(ctx)
        logger.info(
            "vipps_plugin_configured",
            method_code=config.method_code,
            api_host=config.api_host,
            merchant_serial_number=config.merchant_serial_number,
        )
        return config
