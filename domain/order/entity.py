"""
Host-owned order aggregate as seen by the payment adapter.

The adapter never mutates these objects. Relations (`lines`, `customer`,
`shipping_lines`) may be unloaded until the host hydrates them, which is
represented by `None`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass
class Customer:
    id: Union[int, str]
    phone_number: Optional[str] = None


@dataclass
class OrderLine:
    id: Union[int, str]
    quantity: int
    unit_price_with_tax: int


@dataclass
class ShippingLine:
    id: Union[int, str]
    shipping_method_id: Union[int, str]


@dataclass
class Order:
    """
    Order as exposed by the host.

    Amounts are integers in minor units (øre).
    """

    id: Union[int, str]
    code: str
    total_with_tax: int
    lines: Optional[list[OrderLine]] = None
    customer: Optional[Customer] = None
    shipping_lines: Optional[list[ShippingLine]] = None

    @property
    def provider_order_id(self) -> str:
        """Identifier sent to Vipps as `transaction.orderId`."""
        return str(self.id)
