"""
Request context handed over by the host for every lifecycle call.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ApiType(str, Enum):
    """Which host API surface issued the call."""
    ADMIN = "admin"
    SHOP = "shop"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Channel:
    token: str
    code: str = "__default_channel__"


@dataclass(frozen=True)
class RequestContext:
    api_type: ApiType | str
    channel: Channel = field(default_factory=lambda: Channel(token=""))
    session_token: Optional[str] = None

    @property
    def api_type_value(self) -> str:
        return getattr(self.api_type, "value", self.api_type)

    @property
    def is_admin(self) -> bool:
        return self.api_type_value == ApiType.ADMIN.value
