"""Business exceptions shared by the domain, application and infrastructure layers.

The core layer only maps these to HTTP responses; nothing here imports it.
"""
from __future__ import annotations

from typing import Optional

from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode


class BusinessException(Exception):
    """Base class for all business errors."""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class NoActiveOrderException(BusinessException):
    def __init__(self):
        super().__init__(
            code=PaymentCode.NO_ACTIVE_ORDER,
            message="No active order found for session",
            error_type="NoActiveOrder",
        )


class EmptyOrderException(BusinessException):
    def __init__(self, order_code: Optional[str] = None):
        super().__init__(
            code=PaymentCode.EMPTY_ORDER,
            message="Cannot create payment intent for empty order",
            error_type="EmptyOrder",
            details={"order_code": order_code} if order_code else None,
        )


class MissingCustomerException(BusinessException):
    def __init__(self, order_code: Optional[str] = None):
        super().__init__(
            code=PaymentCode.MISSING_CUSTOMER,
            message="Cannot create payment intent for order without customer",
            error_type="MissingCustomer",
            details={"order_code": order_code} if order_code else None,
        )


class MissingShippingMethodException(BusinessException):
    def __init__(self, order_code: Optional[str] = None):
        super().__init__(
            code=PaymentCode.MISSING_SHIPPING_METHOD,
            message="Cannot create payment intent for order without shippingMethod",
            error_type="MissingShippingMethod",
            details={"order_code": order_code} if order_code else None,
        )


class HandlerNotConfiguredException(BusinessException):
    """No payment method uses the handler; an operator has to configure one."""

    def __init__(self, handler_code: str):
        super().__init__(
            code=PaymentCode.HANDLER_NOT_CONFIGURED,
            message=f"No paymentMethod configured with handler {handler_code}",
            error_type="HandlerNotConfigured",
            details={"handler_code": handler_code},
        )


class MissingConfigArgumentException(BusinessException):
    def __init__(self, field_name: str, *, method_code: Optional[str] = None):
        self.field_name = field_name
        super().__init__(
            code=PaymentCode.MISSING_CONFIG_ARGUMENT,
            message=f"Paymentmethod {method_code} has no {field_name} configured",
            error_type="MissingConfigArgument",
            details={"method_code": method_code, "argument": field_name},
            field=field_name,
        )


class UnauthorizedApiTypeException(BusinessException):
    def __init__(self, api_type: str):
        super().__init__(
            code=PaymentCode.UNAUTHORIZED_API_TYPE,
            message=f"CreatePayment is not allowed for apiType '{api_type}'",
            error_type="UnauthorizedApiType",
            details={"api_type": api_type},
        )


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )
