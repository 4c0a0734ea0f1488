"""
utils/retry.py — Backoff for transient SQS transport errors.

Wraps a callable in a tenacity retry loop. Only the exception types named in
`retry_on` are retried; everything else surfaces on the first attempt. The
transport passes botocore's BotoCoreError (connection resets, endpoint
timeouts) and lets ClientError responses through untouched.

Usage:
    from tender_writer.utils.retry import with_retry

    retrying = with_retry(max_attempts=3, retry_on=BotoCoreError)
    response = retrying(sqs.send_message_batch)(QueueUrl=url, Entries=entries)
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

log = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _log_before_sleep(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    log.warning(
        "retry_attempt",
        function=getattr(retry_state.fn, "__qualname__", repr(retry_state.fn)),
        attempt=retry_state.attempt_number,
        sleep_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
        error_type=type(exc).__name__ if exc else None,
        error=str(exc) if exc else None,
    )


def with_retry(
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    retry_on: type[Exception] | tuple[type[Exception], ...] = Exception,
    sleep: Callable[[float], None] = time.sleep,
) -> Callable[[F], F]:
    """
    Decorator retrying `retry_on` errors with exponential backoff.

    Delays are base_delay * 2^(attempt-1), capped at max_delay. The last
    error is re-raised as-is once max_attempts is reached.
    """

    def decorator(fn: F) -> F:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            retrying = Retrying(
                stop=stop_after_attempt(max_attempts),
                wait=wait_exponential(multiplier=base_delay, max=max_delay),
                retry=retry_if_exception_type(retry_on),
                before_sleep=_log_before_sleep,
                sleep=sleep,
                reraise=True,
            )
            try:
                return retrying(fn, *args, **kwargs)
            except retry_on as exc:
                if retrying.statistics.get("attempt_number", 1) >= max_attempts:
                    log.error(
                        "retry_exhausted",
                        function=getattr(fn, "__qualname__", repr(fn)),
                        max_attempts=max_attempts,
                        error=str(exc),
                    )
                raise

        return wrapper  # type: ignore[return-value]

    return decorator
