"""
Payment method port: read access to the host's configured payment methods.
"""
from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from domain.common.context import RequestContext
from domain.payment_method.entity import PaymentMethod


@runtime_checkable
class PaymentMethodService(Protocol):
    async def find_all(self, ctx: RequestContext) -> Sequence[PaymentMethod]: ...
