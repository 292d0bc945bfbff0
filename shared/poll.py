"""Poll a predicate until it reports convergence or the time budget runs out."""

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable

from shared.errors import ConvergenceTimeout, HardPredicateFailure, NotYetObserved

log = logging.getLogger("sentinel.poll")

DEFAULT_INTERVAL = 1.0
DEFAULT_TIMEOUT = 60.0

Predicate = Callable[[], "bool | Awaitable[bool]"]
Classifier = Callable[[Exception], bool]


def is_not_yet_observed(exc: Exception) -> bool:
    return isinstance(exc, NotYetObserved)


def any_of(*classifiers: Classifier) -> Classifier:
    """Combine classifiers: an error is transient if any of them says so."""

    def classify(exc: Exception) -> bool:
        return any(c(exc) for c in classifiers)

    return classify


def _is_async(fn) -> bool:
    return inspect.iscoroutinefunction(fn) or inspect.iscoroutinefunction(
        getattr(fn, "__call__", None)
    )


async def call(fn):
    """Await ``fn()``. Plain callables run in a worker thread so blocking
    API calls do not hold up the event loop or delay cancellation."""
    if _is_async(fn):
        result = fn()
    else:
        result = await asyncio.to_thread(fn)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _evaluate(predicate: Predicate) -> bool:
    return bool(await call(predicate))


async def poll_until_converged(
    predicate: Predicate,
    interval: float = DEFAULT_INTERVAL,
    timeout: float = DEFAULT_TIMEOUT,
    is_transient: Classifier = is_not_yet_observed,
) -> int:
    """Evaluate ``predicate`` now, then every ``interval`` seconds, until it returns True.

    Errors for which ``is_transient`` returns True are logged and retried like a
    False result. Any other error aborts immediately with HardPredicateFailure.
    Running past ``timeout`` raises ConvergenceTimeout. A predicate call that is
    already running when the deadline passes is allowed to finish.

    Returns:
        The number of predicate evaluations it took to converge.
    """
    if interval <= 0:
        raise ValueError(f"interval must be positive, got {interval}")
    if timeout < 0:
        raise ValueError(f"timeout must not be negative, got {timeout}")

    deadline = time.monotonic() + timeout
    attempts = 0
    last_error: Exception | None = None

    while True:
        attempts += 1
        try:
            if await _evaluate(predicate):
                log.debug("Converged after %d attempt(s)", attempts)
                return attempts
        except Exception as e:
            if not is_transient(e):
                raise HardPredicateFailure(e, attempts) from e
            log.info("Attempt %d: not converged yet: %s", attempts, e)
            last_error = e

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise ConvergenceTimeout(timeout, attempts, last_error)
        if remaining < interval:
            # Next tick would land past the deadline
            await asyncio.sleep(remaining)
            raise ConvergenceTimeout(timeout, attempts, last_error)
        await asyncio.sleep(interval)
