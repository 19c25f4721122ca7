"""
Base payment client: one lazily created httpx session, retry and logging.

Subclasses add the provider endpoints. Only transport failures (connect,
read and write errors, timeouts) are retried; an HTTP status or an error in
the body is an answer from the provider and is returned to the caller.
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional
from contextlib import asynccontextmanager

import httpx
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_exponential

from core.logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_TIMEOUTS = {"connect": 2.0, "read": 10.0, "write": 10.0, "total": 15.0}


class BasePaymentClient:
    provider: str = "base"

    def __init__(
        self,
        *,
        base_url: str,
        headers: Optional[dict[str, str]] = None,
        timeouts: Optional[dict[str, float]] = None,
        retry: Optional[dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.default_headers: dict[str, str] = dict(headers or {})
        self._timeouts_cfg = {**DEFAULT_TIMEOUTS, **(timeouts or {})}
        self._retry_cfg = retry or {"max": 0, "base": 0.2}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def timeouts(self) -> httpx.Timeout:
        cfg = self._timeouts_cfg
        return httpx.Timeout(cfg["total"], connect=cfg["connect"], read=cfg["read"], write=cfg["write"])

    @property
    def max_attempts(self) -> int:
        return max(int(self._retry_cfg.get("max", 0)), 0) + 1

    @asynccontextmanager
    async def client(self):
        # The session outlives each call; aclose() or leaving `async with` ends it
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.default_headers,
                timeout=self.timeouts,
                transport=self._transport,
            )
        yield self._client

    async def aclose(self) -> None:
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def _before_sleep(self, state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "payment_call_retry",
            provider=self.provider,
            attempt=state.attempt_number,
            error=str(exc) if exc else None,
        )

    async def _retry(self, fn: Callable[[], Awaitable[Any]]):
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self._retry_cfg.get("base", 0.2), min=0.1, max=2.0),
            retry=retry_if_exception_type(httpx.TransportError),
            before_sleep=self._before_sleep,
            reraise=True,
        ):
            with attempt:
                return await fn()

    def _log(self, event: str, **kwargs) -> None:
        logger.info(event, provider=self.provider, **kwargs)
