"""
Payment method configuration records owned by the host.

A payment method binds a handler code to a list of named string arguments
(credentials, hosts). The adapter reads them and never writes them back.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ConfigArg:
    name: str
    value: Optional[str]


@dataclass(frozen=True)
class ConfigurableOperation:
    code: str
    args: list[ConfigArg] = field(default_factory=list)

    def get_arg(self, name: str) -> Optional[ConfigArg]:
        return next((arg for arg in self.args if arg.name == name), None)


@dataclass(frozen=True)
class PaymentMethod:
    id: int | str
    code: str
    handler: ConfigurableOperation
    enabled: bool = True
    name: Optional[str] = None
