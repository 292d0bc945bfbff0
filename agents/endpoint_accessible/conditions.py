"""Turn sync outcomes into Degraded conditions and track their transitions."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from shared.errors import EndpointsInaccessible, SourceUnavailable


@dataclass
class Condition:
    type: str
    status: str  # "True" or "False"
    reason: str
    message: str = ""
    last_transition_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def degraded(self) -> bool:
        return self.status == "True"


def condition_from_sync(name: str, exc: Exception | None) -> Condition:
    cond_type = f"{name}Degraded"
    if exc is None:
        return Condition(type=cond_type, status="False", reason="AsExpected")
    if isinstance(exc, SourceUnavailable):
        reason = "SourceUnavailable"
    elif isinstance(exc, EndpointsInaccessible):
        reason = "EndpointsInaccessible"
    else:
        reason = "SyncError"
    return Condition(type=cond_type, status="True", reason=reason, message=str(exc))


class ConditionTracker:
    """Remembers the last condition per type; only status changes count as transitions."""

    def __init__(self):
        self._conditions: dict[str, Condition] = {}

    def get(self, cond_type: str) -> Condition | None:
        return self._conditions.get(cond_type)

    def update(self, cond: Condition) -> bool:
        """Store ``cond``. Returns True if its status differs from the previous one."""
        previous = self._conditions.get(cond.type)
        if previous is not None and previous.status == cond.status:
            # Keep the original transition time, refresh reason and message
            cond.last_transition_time = previous.last_transition_time
            self._conditions[cond.type] = cond
            return False
        self._conditions[cond.type] = cond
        # A first healthy observation is not worth announcing
        return previous is not None or cond.degraded
