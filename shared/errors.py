"""Error types shared by the reachability checks and the convergence poller."""

from enum import Enum


class ProbeFailureReason(str, Enum):
    MALFORMED = "malformed"
    TIMEOUT = "timeout"
    UNREACHABLE = "unreachable"
    BAD_STATUS = "bad_status"


# --- Reconciliation errors ---


class ReconcileError(Exception):
    """Base class for errors surfaced by a controller sync."""


class SourceUnavailable(ReconcileError):
    """The endpoint list could not be obtained, so nothing was probed."""

    def __init__(self, controller: str, cause: Exception):
        self.controller = controller
        self.cause = cause
        super().__init__(f"{controller}: unable to list endpoints: {cause}")


class EndpointsInaccessible(ReconcileError):
    """One or more probes failed. Keeps every failing ProbeResult."""

    def __init__(self, controller: str, failures: list):
        self.controller = controller
        self.failures = failures
        details = "; ".join(f"{f.url}: {f.describe()}" for f in failures)
        super().__init__(
            f"{controller}: {len(failures)} endpoint(s) inaccessible: {details}"
        )

    def by_reason(self, reason: ProbeFailureReason) -> list:
        return [f for f in self.failures if f.reason == reason]


# --- Polling errors ---


class NotYetObserved(Exception):
    """Raised by a predicate when the state it inspects is not visible yet."""


class PollError(Exception):
    """Base class for poller outcomes other than convergence."""


class ConvergenceTimeout(PollError):
    """The poller ran out of time before the predicate succeeded."""

    def __init__(self, timeout: float, attempts: int, last_error: Exception | None = None):
        self.timeout = timeout
        self.attempts = attempts
        self.last_error = last_error
        msg = f"timed out waiting for the condition after {timeout}s ({attempts} attempt(s))"
        if last_error is not None:
            msg += f", last error: {last_error}"
        super().__init__(msg)


class HardPredicateFailure(PollError):
    """The predicate reported an error that is not retryable."""

    def __init__(self, cause: Exception, attempts: int):
        self.cause = cause
        self.attempts = attempts
        super().__init__(f"condition check failed on attempt {attempts}: {cause}")
