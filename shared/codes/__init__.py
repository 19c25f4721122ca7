"""
Generic business codes shared by every layer.

Vipps specific codes live in `shared.codes.payment_codes`; this module only
holds the envelope level ones the HTTP layer needs on its own.
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    SUCCESS = 0

    # Request body or header did not validate
    PARAM_VALIDATION_ERROR = 10003

    # Plugin has not been attached to the app yet
    SERVICE_UNAVAILABLE = 40003

    # Anything not raised as a BusinessException
    SYSTEM_ERROR = 40000


__all__ = ["BusinessCode"]
