"""
Exceptions for payment providers mapped to unified BusinessException variants.

Two channels are kept apart: PaymentProviderError for a logical failure the
provider reports inside a response body, PaymentTransportError for network
failures and non-2xx HTTP statuses.
"""
from __future__ import annotations

from typing import Optional
from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode


class PaymentProviderError(BusinessException):
    def __init__(self, message: str, *, provider: str, provider_code: str | None = None, details: Optional[dict] = None):
        full_details = {"provider": provider, "provider_code": provider_code}
        if details:
            full_details.update(details)
        super().__init__(
            code=PaymentCode.PROVIDER_ERROR,
            message=message,
            error_type="PaymentProviderError",
            details=full_details,
        )


class PaymentTransportError(BusinessException):
    def __init__(self, message: str, *, provider: str, status_code: int | None = None, details: Optional[dict] = None):
        self.status_code = status_code
        full_details = {"provider": provider, "status_code": status_code}
        if details:
            full_details.update(details)
        super().__init__(
            code=PaymentCode.TRANSPORT_ERROR,
            message=message,
            error_type="PaymentTransportError",
            details=full_details,
        )
