"""
Factory for Vipps gateway clients.
"""
from __future__ import annotations

from typing import Optional

import httpx

from application.dtos.vipps import VippsConfig
from core.settings import VippsSettings, vipps_settings
from infrastructure.external.payments.vipps_client import VippsClient


def build_vipps_client(
    config: VippsConfig,
    *,
    settings: Optional[VippsSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> VippsClient:
    """Build a client bound to one payment method's credentials."""
    cfg = settings or vipps_settings
    return VippsClient(
        config.subscription_key,
        host=config.api_host or cfg.api_base_url,
        merchant_serial_number=config.merchant_serial_number,
        api_version=cfg.api_version,
        client_id=config.client_id,
        client_secret=config.client_secret,
        merchant_serial_header_source=cfg.merchant_serial_header_source,
        timeouts=cfg.timeouts.model_dump(),
        retry={"max": cfg.retry.max, "base": cfg.retry.base_backoff},
        transport=transport,
    )


__all__ = ["VippsClient", "build_vipps_client"]
