# miner_backend/core/retry.py
import time
from typing import Any, Callable, Optional, TypeVar

from miner_backend.core.errors import TransportError

T = TypeVar("T")


class RetriesExhausted(Exception):
    """Every attempt failed. Carries the last error or the last rejected value."""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None, last_value: Any = None):
        reason = last_error if last_error is not None else last_value
        super().__init__(f"gave up after {attempts} attempts: {reason}")
        self.attempts = attempts
        self.last_error = last_error
        self.last_value = last_value


def _always(_value: Any) -> bool:
    return True


def _is_transport_error(exc: BaseException) -> bool:
    return isinstance(exc, TransportError)


def retry(
    action: Callable[[], T],
    *,
    max_attempts: int,
    backoff: float = 0.0,
    is_success: Callable[[T], bool] = _always,
    is_retryable: Callable[[BaseException], bool] = _is_transport_error,
    on_failure: Optional[Callable[[int, Optional[BaseException], Any], None]] = None,
    delay_first: bool = False,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run ``action`` until ``is_success(result)`` or ``max_attempts`` runs are used.

    A raised exception counts as a failed attempt when ``is_retryable`` accepts
    it and propagates immediately otherwise. ``on_failure(attempt, error, value)``
    is called after every failed attempt.

    With ``delay_first`` the ``backoff`` wait comes before every attempt (polling);
    otherwise it only separates a failure from the next attempt.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    last_error: Optional[BaseException] = None
    last_value: Any = None
    for attempt in range(1, max_attempts + 1):
        if delay_first and backoff > 0:
            sleep(backoff)
        try:
            value = action()
        except Exception as e:
            if not is_retryable(e):
                raise
            last_error, last_value = e, None
        else:
            if is_success(value):
                return value
            last_error, last_value = None, value

        if on_failure is not None:
            on_failure(attempt, last_error, last_value)
        if not delay_first and backoff > 0 and attempt < max_attempts:
            sleep(backoff)

    raise RetriesExhausted(max_attempts, last_error, last_value)
