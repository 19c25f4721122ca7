"""
Vipps shop routes.

Thin layer over VippsPaymentService; provider details stay in the service
and the client.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from api.dependencies import get_request_context, get_vipps_service
from application.dtos.payments import PaymentIntentResponse
from application.services.vipps_payment_service import VippsPaymentService
from core.response import success_response
from domain.common.context import RequestContext


router = APIRouter(prefix="/vipps", tags=["Vipps"])


@router.post("/payment-intents", summary="Create Vipps payment intent")
async def create_vipps_payment_intent(
    ctx: RequestContext = Depends(get_request_context),
    service: VippsPaymentService = Depends(get_vipps_service),
):
    url = await service.create_payment_intent(ctx)
    return success_response(data=PaymentIntentResponse(url=url).model_dump(), message="Payment intent created")
