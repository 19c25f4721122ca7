"""
Payment specific codes and provider status mapping.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Order preconditions (21xxx)
    NO_ACTIVE_ORDER = 21000
    EMPTY_ORDER = 21001
    MISSING_CUSTOMER = 21002
    MISSING_SHIPPING_METHOD = 21003

    # Payment method configuration (22xxx)
    HANDLER_NOT_CONFIGURED = 22000
    MISSING_CONFIG_ARGUMENT = 22001

    # Caller authorization (3xxxx)
    UNAUTHORIZED_API_TYPE = 31000

    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    TRANSPORT_ERROR = 60001


# Vipps transactionLogHistory operations -> internal payment states
PROVIDER_STATUS_TO_INTERNAL = {
    "vipps": {
        "INITIATE": "pending",
        "RESERVE": "authorized",
        "SALE": "settled",
        "CAPTURE": "settled",
        "REFUND": "refunded",
        "CANCEL": "canceled",
        "VOID": "canceled",
        "FAILED": "failed",
        "REJECTED": "failed",
    },
}
