"""
Vipps adapter settings using pydantic-settings v2 with nested env keys.

Credentials are not configured here: they belong to the host's payment
method record and are resolved per call (see VippsPaymentService). This
module only holds provider-wide constants and transport tuning.
"""
from __future__ import annotations

from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field


class PaymentTimeouts(BaseModel):
    connect: float = 2.0
    read: float = 10.0
    write: float = 10.0
    total: float = 15.0


class PaymentRetry(BaseModel):
    # 0 keeps provider calls fire-and-forget
    max: int = 0
    base_backoff: float = 0.2


class VippsPaths(BaseModel):
    """Suffixes appended to the configured shop host."""
    callback: str = "/vipps/callbacks-for-payment-updates"
    fallback: str = "/vipps/fallback-order-result-page/{order_code}"
    consent_removal: str = "/vipps/consent-removal"


class VippsSettings(BaseSettings):
    handler_code: str = "vipps"
    api_base_url: str = "https://api.vipps.no"
    api_version: str = "2021-12-14"
    merchant_serial_header_source: Literal["merchant_serial_number", "subscription_key"] = "merchant_serial_number"
    send_idempotency_key: bool = True
    payment_type: str = "eComm Regular Payment"
    scope: str = "name address email"

    paths: VippsPaths = Field(default_factory=VippsPaths)
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    retry: PaymentRetry = Field(default_factory=PaymentRetry)

    model_config = SettingsConfigDict(
        env_prefix="VIPPS__",
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


vipps_settings = VippsSettings()
