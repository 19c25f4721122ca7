"""
API dependencies: request context and the Vipps orchestrator.
"""
from typing import Optional

from fastapi import Header, Request

from application.services.vipps_payment_service import VippsPaymentService
from domain.common.context import ApiType, Channel, RequestContext
from domain.common.exceptions import BusinessException
from infrastructure.plugin import VippsPlugin
from shared.codes import BusinessCode


def get_plugin(request: Request) -> VippsPlugin:
    plugin: Optional[VippsPlugin] = getattr(request.app.state, "vipps_plugin", None)
    if plugin is None:
        raise BusinessException(
            code=BusinessCode.SERVICE_UNAVAILABLE,
            message="Vipps plugin is not configured",
            error_type="PluginNotConfigured",
        )
    return plugin


async def get_vipps_service(request: Request) -> VippsPaymentService:
    return get_plugin(request).service


async def get_request_context(
    x_channel_token: str = Header(default=""),
    x_session_token: Optional[str] = Header(default=None),
) -> RequestContext:
    """Shop API context; admin calls never come through these routes."""
    return RequestContext(
        api_type=ApiType.SHOP,
        channel=Channel(token=x_channel_token),
        session_token=x_session_token,
    )
