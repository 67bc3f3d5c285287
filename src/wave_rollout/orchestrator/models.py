"""Data model of a rollout: requests, targets, outcomes and the final report."""

from typing import Dict, List, Optional
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from wave_rollout.utils.errors import RolloutError


@dataclass(frozen=True)
class RolloutRequest:
    """Parameters of one rollout run."""

    namespace_pattern: str
    name: str
    new_image: str
    current_image: Optional[str] = None
    batch_concurrency: int = 10
    container: Optional[str] = None


@dataclass(frozen=True)
class Target:
    """A deployment target selected for update."""

    namespace: str
    name: str
    current_image: str
    desired_image: str

    @property
    def key(self) -> str:
        """Namespaced identifier of the target."""
        return f"{self.namespace}/{self.name}"


class OutcomeStatus(Enum):
    """Terminal status of a target."""
    UPDATED = "updated"
    ALREADY_CURRENT = "already_current"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class RolloutOutcome:
    """Result of processing a single target."""

    namespace: str
    name: str
    status: OutcomeStatus
    reason: Optional[str] = None
    error: Optional[RolloutError] = None
    batch_number: Optional[int] = None
    previous_generation: Optional[int] = None
    image_applied: bool = False
    duration: float = 0.0  # seconds

    @property
    def key(self) -> str:
        """Namespaced identifier of the target."""
        return f"{self.namespace}/{self.name}"

    @classmethod
    def updated(cls, target: Target, **kwargs) -> 'RolloutOutcome':
        return cls(target.namespace, target.name, OutcomeStatus.UPDATED, image_applied=True, **kwargs)

    @classmethod
    def already_current(cls, namespace: str, name: str, **kwargs) -> 'RolloutOutcome':
        return cls(namespace, name, OutcomeStatus.ALREADY_CURRENT, **kwargs)

    @classmethod
    def skipped(cls, namespace: str, name: str, reason: str, **kwargs) -> 'RolloutOutcome':
        return cls(namespace, name, OutcomeStatus.SKIPPED, reason=reason, **kwargs)

    @classmethod
    def failed(cls, target: Target, error: RolloutError, **kwargs) -> 'RolloutOutcome':
        return cls(
            target.namespace,
            target.name,
            OutcomeStatus.FAILED,
            reason=error.message,
            error=error,
            **kwargs
        )

    def is_failed(self) -> bool:
        """Check if the target failed."""
        return self.status == OutcomeStatus.FAILED


@dataclass
class SelectionResult:
    """Worklist produced by target selection, with informational counters."""

    targets: List[Target] = field(default_factory=list)
    outcomes: List[RolloutOutcome] = field(default_factory=list)
    total_projects: int = 0
    matching_projects: int = 0
    namespace_mismatch: int = 0
    image_mismatch: int = 0
    already_current: int = 0
    not_found: int = 0


@dataclass
class RolloutReport:
    """Complete result of a rollout run."""

    new_image: Optional[str] = None
    current_image: Optional[str] = None
    outcomes: List[RolloutOutcome] = field(default_factory=list)
    batch_count: int = 0
    total_projects: int = 0
    matching_projects: int = 0
    namespace_mismatch: int = 0
    image_mismatch: int = 0
    not_found: int = 0
    cancelled: bool = False
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: float = 0.0  # seconds

    def count(self, status: OutcomeStatus) -> int:
        """Number of outcomes with the given status."""
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def already_current(self) -> int:
        return self.count(OutcomeStatus.ALREADY_CURRENT)

    @property
    def updated(self) -> int:
        return self.count(OutcomeStatus.UPDATED)

    @property
    def skipped(self) -> int:
        return self.count(OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self.count(OutcomeStatus.FAILED)

    def has_failures(self) -> bool:
        """Check if any target failed."""
        return self.failed > 0

    def get_failed_outcomes(self) -> List[RolloutOutcome]:
        """Get the outcomes of failed targets."""
        return [outcome for outcome in self.outcomes if outcome.is_failed()]

    def get_summary(self) -> Dict[str, int]:
        """Get the aggregate counts of the run."""
        return {
            'namespace_mismatch': self.namespace_mismatch,
            'image_mismatch': self.image_mismatch,
            'not_found': self.not_found,
            'already_current': self.already_current,
            'updated': self.updated,
            'skipped': self.skipped,
            'failed': self.failed,
        }
