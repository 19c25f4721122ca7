"""
Structlog logging configuration.

structlog and stdlib records go through one processor chain, so library
logs (httpx, uvicorn) are rendered and redacted like our own events.
"""
import json
import logging
from typing import Any, List

import structlog
from structlog.contextvars import merge_contextvars
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer, TimeStamper, add_log_level
from structlog.stdlib import ProcessorFormatter

from core.config import settings


REDACTED = "***"


def _redact(value: Any, keys: frozenset[str]) -> Any:
    if isinstance(value, dict):
        return {k: (REDACTED if str(k).lower() in keys else _redact(v, keys)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_redact(item, keys) for item in value)
    return value


def redact_secrets(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Mask credential values, including inside nested dicts such as headers."""
    keys = frozenset(k.lower() for k in settings.LOG_REDACT_FIELDS)
    return _redact(event_dict, keys)


def get_renderer() -> Any:
    if settings.DEBUG or not settings.LOG_JSON:
        return ConsoleRenderer(colors=settings.DEBUG)

    # structlog passes default= and sort_keys= through to the serializer
    def _dumps(obj, default=None, **kwargs):
        return json.dumps(obj, ensure_ascii=False, default=default, **kwargs)
    return JSONRenderer(serializer=_dumps)


def _shared_processors() -> List[Any]:
    return [
        merge_contextvars,
        add_log_level,
        TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        # last, so nothing added afterwards escapes masking
        redact_secrets,
    ]


def configure_logging() -> None:
    """Configure structlog and bridge stdlib logging into the same chain."""
    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[ProcessorFormatter.remove_processors_meta, get_renderer()],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    if settings.DEBUG:
        root.setLevel(logging.DEBUG)
    else:
        root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    # httpx logs every request line at INFO, which duplicates vipps_request events
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


configure_logging()
