"""
Response envelope shared by the Vipps routes and the error handlers.
"""
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, field_serializer

from shared.codes import BusinessCode


class ErrorDetail(BaseModel):
    type: str
    details: Optional[dict] = None
    # Payment method argument or request field at fault
    field: Optional[str] = None
    request_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("timestamp")
    def serialize_timestamp(self, timestamp: datetime) -> str:
        return timestamp.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class Envelope(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None
    error: Optional[ErrorDetail] = None


def success_response(data: Any = None, message: str = "Success") -> Envelope:
    return Envelope(code=BusinessCode.SUCCESS, message=message, data=data)


def error_response(
    code: int,
    message: str,
    error_type: str = "BusinessError",
    details: Optional[dict] = None,
    field: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Envelope:
    """Build the failure envelope; `code` is a BusinessCode or PaymentCode value."""
    return Envelope(
        code=code,
        message=message,
        error=ErrorDetail(type=error_type, details=details, field=field, request_id=request_id),
    )
