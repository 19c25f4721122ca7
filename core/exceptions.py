"""
Exception to HTTP mapping and global exception handlers.

Every error leaves the app in the same envelope as a success, with the
business code in the body and a matching HTTP status on the response.
"""
import traceback

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status as http_status

from .response import error_response
from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode
from core.logging_config import get_logger
from domain.common.exceptions import BusinessException


_STATUS_BY_CODE = {
    BusinessCode.PARAM_VALIDATION_ERROR: http_status.HTTP_422_UNPROCESSABLE_ENTITY,
    BusinessCode.SERVICE_UNAVAILABLE: http_status.HTTP_503_SERVICE_UNAVAILABLE,
    BusinessCode.SYSTEM_ERROR: http_status.HTTP_500_INTERNAL_SERVER_ERROR,

    PaymentCode.NO_ACTIVE_ORDER: http_status.HTTP_404_NOT_FOUND,
    PaymentCode.EMPTY_ORDER: http_status.HTTP_409_CONFLICT,
    PaymentCode.MISSING_CUSTOMER: http_status.HTTP_409_CONFLICT,
    PaymentCode.MISSING_SHIPPING_METHOD: http_status.HTTP_409_CONFLICT,
    # Operator has to fix the payment method, not the shopper
    PaymentCode.HANDLER_NOT_CONFIGURED: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
    PaymentCode.MISSING_CONFIG_ARGUMENT: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
    PaymentCode.UNAUTHORIZED_API_TYPE: http_status.HTTP_403_FORBIDDEN,
    PaymentCode.PROVIDER_ERROR: http_status.HTTP_502_BAD_GATEWAY,
    PaymentCode.TRANSPORT_ERROR: http_status.HTTP_502_BAD_GATEWAY,
}


def business_code_to_http_status(code: int) -> int:
    """Map a business code to an HTTP status (400 by default)."""
    return _STATUS_BY_CODE.get(code, http_status.HTTP_400_BAD_REQUEST)


def _request_id(request: Request):
    state_id = getattr(request.state, "request_id", None)
    return state_id or structlog.contextvars.get_contextvars().get("request_id")


def _json(status_code: int, response) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))


def register_exception_handlers(app: FastAPI):
    logger = get_logger(__name__)

    @app.exception_handler(BusinessException)
    async def business_exception_handler(request: Request, exc: BusinessException):
        status_code = business_code_to_http_status(exc.code)
        # 5xx means the shop or Vipps is at fault; 4xx is the caller's order state
        log = logger.error if status_code >= 500 else logger.warning
        log(
            "business_exception",
            error_type=exc.error_type,
            code=int(exc.code),
            error=exc.message,
            field=exc.field,
        )
        return _json(
            status_code,
            error_response(
                code=exc.code,
                message=exc.message,
                error_type=exc.error_type,
                details=exc.details,
                field=exc.field,
                request_id=_request_id(request),
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first_error = errors[0] if errors else {}
        field = ".".join(str(loc) for loc in first_error.get("loc", [])[1:])
        return _json(
            http_status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_response(
                code=BusinessCode.PARAM_VALIDATION_ERROR,
                message=f"Validation failed: {first_error.get('msg', 'unknown')}",
                error_type="ValidationError",
                details={"errors": jsonable_encoder(errors)},
                field=field or None,
                request_id=_request_id(request),
            ),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error("unhandled_exception", error=str(exc), exc_info=True)
        details = {"exception": str(exc), "traceback": traceback.format_exc()} if app.debug else None
        return _json(
            http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_response(
                code=BusinessCode.SYSTEM_ERROR,
                message="Internal server error",
                error_type="SystemError",
                details=details,
                request_id=_request_id(request),
            ),
        )
