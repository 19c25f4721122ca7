"""
Host-facing payment DTOs (Pydantic v2) returned by the handler and service.
"""
from __future__ import annotations

from typing import Any, Optional
from pydantic import BaseModel, Field

from domain.payment.entity import PaymentState


class CreatePaymentResult(BaseModel):
    amount: int
    state: PaymentState
    transaction_id: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None


class SettlePaymentResult(BaseModel):
    success: bool
    error_message: Optional[str] = None


class CreateRefundResult(BaseModel):
    state: PaymentState
    transaction_id: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class PaymentStatus(BaseModel):
    """Snapshot of a Vipps order as reported by the details endpoint."""
    order_id: str
    status: str
    provider_operation: Optional[str] = None
    amount: Optional[int] = None
    transaction_id: Optional[str] = None
    raw: dict[str, Any] = Field(default_factory=dict)


class PaymentIntentResponse(BaseModel):
    url: str
