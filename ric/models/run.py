"""Run lifecycle models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RunState(str, Enum):
    """Lifecycle of a single run."""

    PENDING = "pending"
    CREATED = "created"
    STARTED = "started"
    STREAMING = "streaming"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"
    CLEANED_UP = "cleaned_up"


@dataclass
class RunResult:
    """Outcome of a run as seen by the coordinator."""

    state: RunState = RunState.PENDING
    container_id: Optional[str] = None
    exit_code: Optional[int] = None
    interrupted: bool = False
    owns_container: bool = False

    def advance(self, state: RunState) -> None:
        self.state = state
