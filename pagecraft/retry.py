"""Backoff for remote fetches, driven by RetryConfig."""

from __future__ import annotations

from collections.abc import Callable

import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import RetryConfig

logger = structlog.get_logger()


def _log_before_sleep(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    logger.warning(
        "fetch_retrying",
        operation=getattr(state.fn, "__name__", "call"),
        attempt=state.attempt_number,
        wait_seconds=round(state.next_action.sleep, 3) if state.next_action else 0.0,
        error=str(error),
        error_type=type(error).__name__,
    )


def with_retry(
    config: RetryConfig,
    *,
    retryable_exceptions: tuple[type[BaseException], ...] = (Exception,),
) -> Callable:
    """Decorator retrying an async call on *retryable_exceptions*.

    Each backoff is logged as ``fetch_retrying``.  Once attempts run
    out the last exception is re-raised as-is, never wrapped in
    ``RetryError``.

    Usage::

        get = with_retry(config.retry, retryable_exceptions=(TransientNotionError,))(get_once)
    """
    return retry(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential(
            multiplier=config.multiplier,
            min=config.initial_wait_seconds,
            max=config.max_wait_seconds,
        ),
        retry=retry_if_exception_type(retryable_exceptions),
        before_sleep=_log_before_sleep,
        reraise=True,
    )
