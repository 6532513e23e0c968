"""Service for executing API requests with automatic retries.

Drives repeated transport attempts under the shared rate limiter and a
per-call backoff sequence until one of: success, a fatal failure, the
attempts running out, or the caller cancelling.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from tinyshrink.domain.errors import ShrinkError, RateLimited, RetriesExhausted, Cancelled
from tinyshrink.domain.events.api_events import (
    DomainEvent, ApiCallInitiated, ApiCallSucceeded, ApiCallFailed,
    ApiCallDeferred, RetryScheduled,
)
from tinyshrink.domain.interfaces.transport import Transport
from tinyshrink.domain.models.outcome import (
    RequestOutcome, Success, RetryableFailure, FatalFailure,
)
from tinyshrink.domain.models.request import ApiRequest
from tinyshrink.infrastructure.resilience.backoff import BackoffPolicy
from tinyshrink.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

RequestBuilder = Callable[[], ApiRequest]
EventListener = Callable[[DomainEvent], None]

DEFAULT_MAX_ATTEMPTS = 3


class ApiRetryService:
    """Handles request execution with rate limiting, backoff and retries.

    Holds no per-call state: every `run` owns its attempt counter, so
    concurrent runs never influence each other's backoff.
    """

    def __init__(
        self,
        transport: Transport,
        rate_limiter: RateLimiter,
        backoff: BackoffPolicy,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        event_listener: Optional[EventListener] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initializes the ApiRetryService.

        Args:
            transport: Executes and classifies a single attempt.
            rate_limiter: Shared token bucket; every attempt takes a token.
            backoff: Computes the delay after a retryable failure.
            max_attempts: Total attempts per run, including the first.
            event_listener: Optional callable receiving domain events.
            sleep: Async sleep used between attempts, injectable for tests.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        self.transport = transport
        self.rate_limiter = rate_limiter
        self.backoff = backoff
        self.max_attempts = max_attempts
        self.event_listener = event_listener
        self._sleep = sleep
        logger.info(f"ApiRetryService initialized: max_attempts={max_attempts}, backoff={backoff!r}")

    def _dispatch_event(self, event: DomainEvent) -> None:
        logger.debug(f"EVENT: {event}")
        if self.event_listener is not None:
            self.event_listener(event)

    async def _backoff_wait(self, delay: float, cancel_event: Optional[asyncio.Event]) -> bool:
        """Sleeps for `delay` seconds. Returns True if cancelled meanwhile."""
        if cancel_event is None:
            await self._sleep(delay)
            return False
        if cancel_event.is_set():
            return True
        if delay <= 0:
            return False
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    def _retry_delay(self, attempt: int, reason: ShrinkError) -> float:
        delay = self.backoff.compute(attempt)
        if isinstance(reason, RateLimited) and reason.retry_after:
            # Honour the server's hint, but never beyond the configured cap
            delay = max(delay, min(float(reason.retry_after), self.backoff.max_delay))
        return delay

    def _cancelled(self, endpoint: str, attempt: int) -> FatalFailure:
        logger.info(f"Request to {endpoint} cancelled before attempt {attempt}.")
        error = Cancelled(f"Operation cancelled before attempt {attempt}")
        self._dispatch_event(ApiCallFailed(endpoint=endpoint, error_type=type(error).__name__, error_message=error.message))
        return FatalFailure(error)

    async def run(
        self,
        build_request: RequestBuilder,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RequestOutcome:
        """Executes a request with rate limiting and retries.

        Args:
            build_request: Zero-argument callable producing a fresh request
                for each attempt.
            cancel_event: Optional signal; checked before every attempt and
                while waiting between attempts.

        Returns:
            Success, or FatalFailure (including RetriesExhausted and
            Cancelled). A RetryableFailure is never returned.
        """
        last_reason: Optional[ShrinkError] = None
        endpoint = "request"

        for attempt in range(1, self.max_attempts + 1):
            if cancel_event is not None and cancel_event.is_set():
                return self._cancelled(endpoint, attempt)

            # 1. Wait for rate limit permission
            waited = await self.rate_limiter.wait_for_permission(cancel_event)
            if cancel_event is not None and cancel_event.is_set():
                return self._cancelled(endpoint, attempt)
            if waited > 0:
                self._dispatch_event(ApiCallDeferred(endpoint=endpoint, wait_time_seconds=waited))

            # 2. Build and send this attempt
            try:
                request = build_request()
            except ShrinkError as e:
                logger.error(f"Could not build request: {e}")
                return FatalFailure(e)
            endpoint = request.endpoint

            self._dispatch_event(ApiCallInitiated(endpoint=endpoint, attempt_number=attempt))
            start_time = time.perf_counter()
            outcome = await self.transport.execute(request)
            latency_ms = (time.perf_counter() - start_time) * 1000

            # 3. Classify
            if isinstance(outcome, Success):
                self._dispatch_event(ApiCallSucceeded(endpoint=endpoint, latency_ms=latency_ms, usage_counter=outcome.usage_counter))
                return outcome

            if isinstance(outcome, FatalFailure):
                logger.error(f"Non-retryable error calling {endpoint} on attempt {attempt}: {outcome.error!r}")
                self._dispatch_event(ApiCallFailed(endpoint=endpoint, error_type=type(outcome.error).__name__, error_message=outcome.error.message))
                return outcome

            if not isinstance(outcome, RetryableFailure):
                raise TypeError(f"Transport returned an unknown outcome: {outcome!r}")

            last_reason = outcome.reason
            if attempt == self.max_attempts:
                break

            delay = self._retry_delay(attempt, last_reason)
            logger.warning(
                f"Retryable error calling {endpoint} on attempt {attempt}/{self.max_attempts}: "
                f"{type(last_reason).__name__}: {last_reason.message}. Waiting {delay:.2f}s..."
            )
            self._dispatch_event(RetryScheduled(endpoint=endpoint, attempt_number=attempt, delay_seconds=delay, reason=type(last_reason).__name__))
            if await self._backoff_wait(delay, cancel_event):
                return self._cancelled(endpoint, attempt + 1)

        # --- Attempts exhausted ---
        error = RetriesExhausted(last_reason, self.max_attempts)
        logger.error(f"Max attempts ({self.max_attempts}) reached for {endpoint}. Last error: {last_reason!r}")
        self._dispatch_event(ApiCallFailed(endpoint=endpoint, error_type=type(error).__name__, error_message=error.message))
        return FatalFailure(error)
