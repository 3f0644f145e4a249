"""Bounded retry shared by script normalization and the generation stages."""
import inspect
from typing import Any, Awaitable, Callable, NamedTuple, TypeVar, Union

from log import get_logger

logger = get_logger("yomikata.retry")

T = TypeVar("T")


class RetryOutcome(NamedTuple):
    value: Any
    accepted: bool
    attempts: int


async def retry_until(
    action: Callable[[], Union[T, Awaitable[T]]],
    accept: Callable[[T], bool],
    attempts: int,
    label: str = "step",
) -> RetryOutcome:
    """Run ``action`` until ``accept`` approves its value, at most ``attempts`` times.

    ``action`` may be sync or async. The last value produced is returned
    whether or not it was accepted; exceptions from ``action`` propagate.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    value: Any = None
    for attempt in range(1, attempts + 1):
        value = action()
        if inspect.isawaitable(value):
            value = await value
        if accept(value):
            return RetryOutcome(value, True, attempt)
        logger.warning(f"Unacceptable output on try {attempt}: {value!r}",
                       extra={"component": "retry", "stage": label, "attempt": attempt})
    return RetryOutcome(value, False, attempts)
