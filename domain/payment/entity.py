"""
Host-side payment vocabulary.

The host's payment state machine persists payments; the adapter only
produces the states below and reads an existing payment when refunding.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from domain.common.exceptions import DomainValidationException


class PaymentState(str, Enum):
    """States the adapter may hand back to the host."""
    SETTLED = "Settled"
    FAILED = "Failed"
    ERROR = "Error"


@dataclass
class Payment:
    """
    A payment previously recorded by the host for an order.

    Business rules:
    1. amount is in minor units and must not be negative
    2. transaction_id is whatever the provider handed out at creation time
    """

    id: Union[int, str]
    amount: int
    method: str
    state: str = PaymentState.SETTLED.value
    transaction_id: Optional[str] = None
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        if self.amount < 0:
            raise DomainValidationException(
                f"Payment amount must not be negative: {self.amount}",
                field="amount",
            )
        if self.metadata is None:
            self.metadata = {}
