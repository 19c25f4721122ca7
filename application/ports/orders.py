"""
Order ports: what the adapter needs from the host's order management.
"""
from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

from domain.common.context import RequestContext
from domain.order.entity import Order


@runtime_checkable
class ActiveOrderService(Protocol):
    async def get_order_from_context(self, ctx: RequestContext) -> Optional[Order]: ...


@runtime_checkable
class EntityHydrator(Protocol):
    """Ensures the named relations of an entity are loaded before use."""

    async def hydrate(self, ctx: RequestContext, entity: Order, *, relations: Sequence[str]) -> Order: ...
