"""Pytest bootstrap configuration.

Stub host collaborators and a recording httpx transport so the real client
code runs against an in-memory Vipps.
"""
import json
from typing import Any, Callable, Optional

import httpx
import pytest

from application.services.vipps_payment_service import VippsPaymentService
from core.settings import VippsSettings
from domain.common.context import ApiType, Channel, RequestContext
from domain.order.entity import Customer, Order, OrderLine, ShippingLine
from domain.payment_method.entity import ConfigArg, ConfigurableOperation, PaymentMethod
from infrastructure.external.payments import build_vipps_client


DEFAULT_ARGS = {
    "host": "https://shop.example.com",
    "apiHost": "api.vipps.no",
    "merchantSerialNumber": "123456",
    "clientId": "client-id",
    "clientSecret": "client-secret",
    "subscriptionKey": "sub-key",
}


class StubActiveOrderService:
    def __init__(self, order: Optional[Order] = None) -> None:
        self.order = order
        self.calls = 0

    async def get_order_from_context(self, ctx):
        self.calls += 1
        return self.order


class StubHydrator:
    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []

    async def hydrate(self, ctx, entity, *, relations):
        self.calls.append(tuple(relations))
        return entity


class StubPaymentMethodService:
    def __init__(self, methods) -> None:
        self.methods = list(methods)

    async def find_all(self, ctx):
        return self.methods


class RecordingTransport:
    """Wraps httpx.MockTransport and keeps every request sent through it."""

    def __init__(self, responder: Optional[Callable[[httpx.Request], httpx.Response]] = None) -> None:
        self.requests: list[httpx.Request] = []
        self.responder = responder or (lambda request: httpx.Response(200, json={}))
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    def body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)


def make_payment_method(
    args: Optional[dict[str, Optional[str]]] = None,
    *,
    handler_code: str = "vipps",
    code: str = "vipps-nok",
) -> PaymentMethod:
    values = DEFAULT_ARGS if args is None else args
    return PaymentMethod(
        id=1,
        code=code,
        handler=ConfigurableOperation(
            code=handler_code,
            args=[ConfigArg(name=name, value=value) for name, value in values.items()],
        ),
    )


def make_order(
    *,
    lines: Optional[int] = 1,
    phone: Optional[str] = "+4799999999",
    with_customer: bool = True,
    shipping_lines: Optional[int] = 1,
    total: int = 10000,
) -> Order:
    return Order(
        id=1,
        code="ORD-1",
        total_with_tax=total,
        lines=[OrderLine(id=i + 1, quantity=1, unit_price_with_tax=total) for i in range(lines)] if lines is not None else None,
        customer=Customer(id=7, phone_number=phone) if with_customer else None,
        shipping_lines=[ShippingLine(id=i + 1, shipping_method_id=1) for i in range(shipping_lines)] if shipping_lines is not None else None,
    )


@pytest.fixture
def shop_ctx() -> RequestContext:
    return RequestContext(api_type=ApiType.SHOP, channel=Channel(token="channel-token"))


@pytest.fixture
def admin_ctx() -> RequestContext:
    return RequestContext(api_type=ApiType.ADMIN, channel=Channel(token="channel-token"))


@pytest.fixture
def recorder() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def settings() -> VippsSettings:
    return VippsSettings()


@pytest.fixture
def build_service(recorder, settings):
    """Return a builder of (service, collaborators) wired to the recording transport."""

    def _build(order: Optional[Order] = None, methods=None, vipps_settings: Optional[VippsSettings] = None):
        cfg = vipps_settings or settings
        active_orders = StubActiveOrderService(order)
        hydrator = StubHydrator()
        payment_methods = StubPaymentMethodService([make_payment_method()] if methods is None else methods)
        built = []

        def factory(config):
            built.append(config)
            return build_vipps_client(config, settings=cfg, transport=recorder.transport)

        service = VippsPaymentService(
            active_orders,
            hydrator,
            payment_methods,
            client_factory=factory,
            settings=cfg,
        )
        return service, {"orders": active_orders, "hydrator": hydrator, "methods": payment_methods, "built": built}

    return _build
