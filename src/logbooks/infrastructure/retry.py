"""Retry utilities using tenacity.

``retry`` runs a callable up to ``max_attempts + 1`` times with capped
exponential backoff and optional jitter. ``retry_db`` and ``retry_network``
are presets that only retry errors whose text matches known transient
patterns.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    stop_after_attempt,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Substrings (case-insensitive) of errors worth retrying against the store
RETRYABLE_DB_ERRORS = (
    "SQLITE_BUSY",
    "SQLITE_LOCKED",
    "database is locked",
    "database table is locked",
    "database schema is locked",
    "cannot commit - no transaction is active",
    "ECONNREFUSED",
    "ETIMEDOUT",
    "ENOTFOUND",
    "connection refused",
    "timed out",
)

RETRYABLE_NETWORK_ERRORS = (
    "ECONNREFUSED",
    "ETIMEDOUT",
    "ENOTFOUND",
    "ECONNRESET",
    "EPIPE",
    "fetch failed",
    "connection refused",
    "connection reset",
    "timed out",
    "broken pipe",
    "name or service not known",
)


@dataclass(frozen=True)
class RetryOptions:
    """Options for one retry invocation.

    Attributes:
        max_attempts: Retries after the initial attempt (0 = single attempt)
        initial_delay_ms: Delay before the first retry
        max_delay_ms: Upper bound for any single delay
        backoff_multiplier: Growth factor between consecutive delays
        jitter: Add a random 0-50% of the delay
        is_retryable: Error classifier (None = retry every error)
        on_retry: Called with (error, attempt) before each sleep
        on_exhausted: Called with (error, attempts) when attempts run out
        sleep: Sleeper taking seconds
    """

    max_attempts: int = 3
    initial_delay_ms: int = 100
    max_delay_ms: int = 5000
    backoff_multiplier: float = 2.0
    jitter: bool = True
    is_retryable: Optional[Callable[[Any], bool]] = None
    on_retry: Optional[Callable[[BaseException, int], None]] = None
    on_exhausted: Optional[Callable[[BaseException, int], None]] = None
    sleep: Callable[[float], None] = time.sleep

    def __post_init__(self):
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")
        if self.initial_delay_ms <= 0 or self.max_delay_ms <= 0:
            raise ValueError("delays must be > 0")
        if self.backoff_multiplier <= 1:
            raise ValueError("backoff_multiplier must be > 1")

    def merge(self, **overrides: Any) -> RetryOptions:
        """Copy with the given fields replaced (None values are ignored)"""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)


_DEFAULT_OPTIONS = RetryOptions()


def error_text(error: Any) -> str:
    """Render an arbitrary error value as text for pattern matching"""
    if isinstance(error, BaseException):
        parts = [str(error)]
        # sqlite3.Error carries the symbolic result code on Python 3.11+
        code = getattr(error, "sqlite_errorname", None)
        if code:
            parts.append(str(code))
        return " ".join(parts)
    if isinstance(error, str):
        return error
    try:
        return json.dumps(error, default=str)
    except (TypeError, ValueError):
        return repr(error)


def _matches_any(error: Any, patterns: tuple) -> bool:
    if error is None:
        return False
    text = error_text(error).lower()
    return any(pattern.lower() in text for pattern in patterns)


def is_retryable_db_error(error: Any) -> bool:
    """Check if an error looks like transient store contention or connectivity"""
    return _matches_any(error, RETRYABLE_DB_ERRORS)


def is_retryable_network_error(error: Any) -> bool:
    """Check if an error looks like a transient network failure"""
    return _matches_any(error, RETRYABLE_NETWORK_ERRORS)


def compute_delay(
    attempt: int,
    options: RetryOptions,
    rand: Callable[[], float] = random.random,
) -> float:
    """Delay in milliseconds before retry number ``attempt`` (1-based).

    ``min(initial * multiplier^(attempt-1), max)`` plus, with jitter, a
    uniform amount in ``[0, 0.5 * delay]``.
    """
    base = min(
        options.initial_delay_ms * options.backoff_multiplier ** (attempt - 1),
        options.max_delay_ms,
    )
    if not options.jitter:
        return float(base)
    return base + base * 0.5 * rand()


def retry(fn: Callable[[], T], options: Optional[RetryOptions] = None) -> T:
    """Call ``fn`` until it succeeds, is not retryable, or attempts run out.

    Args:
        fn: Zero-argument callable
        options: Retry options (defaults if None)

    Returns:
        The value returned by ``fn``

    Raises:
        The last error raised by ``fn``. ``on_exhausted`` fires once the attempt
        budget is spent, even when the last error is not retryable. An
        earlier permanent error skips it.
    """
    opts = options or RetryOptions()

    def _should_retry(retry_state: RetryCallState) -> bool:
        if not retry_state.outcome.failed:
            return False
        exception = retry_state.outcome.exception()
        if opts.is_retryable is None or opts.is_retryable(exception):
            return True
        # A permanent error on the last allowed attempt still exhausts the budget
        if retry_state.attempt_number > opts.max_attempts and opts.on_exhausted is not None:
            opts.on_exhausted(exception, retry_state.attempt_number)
        return False

    def _wait(retry_state: RetryCallState) -> float:
        return compute_delay(retry_state.attempt_number, opts) / 1000.0

    def _before_sleep(retry_state: RetryCallState) -> None:
        if retry_state.outcome is None or opts.on_retry is None:
            return
        opts.on_retry(retry_state.outcome.exception(), retry_state.attempt_number)

    def _exhausted(retry_state: RetryCallState) -> Any:
        exception = retry_state.outcome.exception()
        if opts.on_exhausted is not None:
            opts.on_exhausted(exception, retry_state.attempt_number)
        raise exception

    retrying = Retrying(
        stop=stop_after_attempt(opts.max_attempts + 1),
        wait=_wait,
        retry=_should_retry,
        before_sleep=_before_sleep,
        retry_error_callback=_exhausted,
        sleep=opts.sleep,
    )
    return retrying(fn)


def _non_default_fields(options: RetryOptions) -> dict:
    return {
        f.name: getattr(options, f.name)
        for f in dataclasses.fields(options)
        if getattr(options, f.name) != getattr(_DEFAULT_OPTIONS, f.name)
    }


def create_retry_wrapper(defaults: RetryOptions) -> Callable[..., Any]:
    """Create a retry function with preset options.

    The returned function takes ``fn`` and optionally a ``RetryOptions`` and
    keyword overrides. Fields of ``options`` that differ from the
    ``RetryOptions()`` defaults are laid over the preset, then the keyword
    overrides. Use a keyword override to set a field back to its default.
    """

    def wrapper(
        fn: Callable[[], T],
        options: Optional[RetryOptions] = None,
        **overrides: Any,
    ) -> T:
        changes = _non_default_fields(options) if options is not None else {}
        changes.update(overrides)
        return retry(fn, defaults.merge(**changes))

    return wrapper


def _log_db_retry(error: BaseException, attempt: int) -> None:
    logger.warning(f"Database operation failed (attempt {attempt}): {error}. Retrying...")


def _log_network_retry(error: BaseException, attempt: int) -> None:
    logger.warning(f"Network operation failed (attempt {attempt}): {error}. Retrying...")


DB_RETRY_OPTIONS = RetryOptions(
    max_attempts=5,
    initial_delay_ms=50,
    max_delay_ms=2000,
    is_retryable=is_retryable_db_error,
    on_retry=_log_db_retry,
)

NETWORK_RETRY_OPTIONS = RetryOptions(
    max_attempts=3,
    initial_delay_ms=200,
    max_delay_ms=10000,
    is_retryable=is_retryable_network_error,
    on_retry=_log_network_retry,
)

retry_db = create_retry_wrapper(DB_RETRY_OPTIONS)
retry_network = create_retry_wrapper(NETWORK_RETRY_OPTIONS)
