"""
Vipps eCommerce v2 wire payloads (Pydantic v2).

Field names are snake_case in Python and camelCase on the wire; use
`to_wire()` to obtain the JSON body. Unset optional fields are omitted.
"""
from __future__ import annotations

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class VippsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class CustomerInfo(VippsModel):
    mobile_number: Optional[str] = None


class StaticShippingDetail(VippsModel):
    is_default: str  # "Y" / "N"
    priority: int
    shipping_cost: int
    shipping_method: str
    shipping_method_id: str


class MerchantInfo(VippsModel):
    merchant_serial_number: str
    auth_token: Optional[str] = None
    callback_prefix: Optional[str] = None
    consent_removal_prefix: Optional[str] = None
    fall_back: Optional[str] = None
    is_app: Optional[bool] = None
    payment_type: Optional[str] = None
    shipping_details_prefix: Optional[str] = None
    static_shipping_details: Optional[list[StaticShippingDetail]] = None


class AdditionalData(VippsModel):
    order_code: Optional[str] = None
    channel_token: Optional[str] = None


class Transaction(VippsModel):
    amount: int = Field(ge=0)
    order_id: Optional[str] = None
    transaction_text: Optional[str] = None
    skip_landing_page: Optional[bool] = None
    scope: Optional[str] = None
    additional_data: Optional[AdditionalData] = None
    use_explicit_checkout_flow: Optional[bool] = None


class InitiatePaymentCommand(VippsModel):
    customer_info: CustomerInfo
    merchant_info: MerchantInfo
    transaction: Transaction


class PaymentActionsRequest(VippsModel):
    merchant_info: MerchantInfo
    transaction: Transaction
    should_release_remaining_funds: Optional[bool] = None


class VippsConfig(BaseModel):
    """Credentials and hosts resolved from the host's Vipps payment method."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(min_length=1)
    api_host: str = Field(min_length=1)
    merchant_serial_number: str = Field(min_length=1)
    client_id: str = Field(min_length=1, repr=False)
    client_secret: str = Field(min_length=1, repr=False)
    subscription_key: str = Field(min_length=1, repr=False)
    method_code: Optional[str] = None

    @field_validator("host", "api_host")
    @classmethod
    def _with_scheme(cls, v: str) -> str:
        """Hosts may be configured bare (`api.vipps.no`); https is assumed then."""
        v = v.strip().rstrip("/")
        if v and "://" not in v:
            v = f"https://{v}"
        return v
