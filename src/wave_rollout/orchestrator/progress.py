"""Progress reporting and confirmation hooks injected into the orchestrator."""

import threading
from typing import Callable, List, Optional
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ProgressEventType(Enum):
    """Kinds of progress events."""
    SELECTION_COMPLETED = "selection_completed"
    BATCH_STARTED = "batch_started"
    TARGET_STARTED = "target_started"
    TARGET_UPDATED = "target_updated"
    TARGET_POLLED = "target_polled"
    TARGET_COMPLETED = "target_completed"
    BATCH_COMPLETED = "batch_completed"
    ROLLOUT_COMPLETED = "rollout_completed"


@dataclass
class ProgressEvent:
    """A single entry in the progress stream."""

    type: ProgressEventType
    target: Optional[str] = None
    batch_number: Optional[int] = None
    total: Optional[int] = None
    status: Optional[str] = None
    message: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)


class ProgressSink:
    """Receives progress events; may be called from worker threads."""

    def emit(self, event: ProgressEvent) -> None:
        """Handle a progress event."""
        pass


class NullProgressSink(ProgressSink):
    """Discards all events."""


class CollectingProgressSink(ProgressSink):
    """Keeps every event in memory."""

    def __init__(self):
        self._lock = threading.Lock()
        self.events: List[ProgressEvent] = []

    def emit(self, event: ProgressEvent) -> None:
        with self._lock:
            self.events.append(event)

    def of_type(self, event_type: ProgressEventType) -> List[ProgressEvent]:
        """Get all events of one type, in arrival order."""
        with self._lock:
            return [event for event in self.events if event.type == event_type]


# Asked once, before the first mutation; False aborts the rollout
UserConfirmation = Callable[[str], bool]


def always_confirm(prompt: str) -> bool:
    """Confirmation that accepts without asking."""
    return True
