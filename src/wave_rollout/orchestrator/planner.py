"""Batch planner splitting the worklist into sequential rounds."""

import math
from typing import List
from dataclasses import dataclass, field

from wave_rollout.orchestrator.models import Target
from wave_rollout.utils.errors import ConfigurationError
from wave_rollout.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RolloutBatch:
    """Targets that are updated concurrently."""

    batch_number: int
    targets: List[Target]

    def size(self) -> int:
        """Get the number of targets in this batch."""
        return len(self.targets)


@dataclass
class RolloutPlan:
    """Batches of a rollout, processed in order."""

    batches: List[RolloutBatch] = field(default_factory=list)
    concurrency: int = 1

    def get_total_targets(self) -> int:
        """Get total number of targets in the plan."""
        return sum(batch.size() for batch in self.batches)

    def has_targets(self) -> bool:
        """Check if the plan has anything to update."""
        return len(self.batches) > 0


class BatchPlanner:
    """Partitions a worklist into balanced batches."""

    def create_plan(self, targets: List[Target], concurrency: int) -> RolloutPlan:
        """Create a rollout plan.

        The worklist is cut into ``ceil(L / concurrency)`` consecutive batches
        of ``ceil(L / batch_count)`` targets, so no batch exceeds the
        concurrency limit and the batches are as even as possible.

        Args:
            targets: The worklist
            concurrency: Maximum number of targets updated at once

        Returns:
            RolloutPlan

        Raises:
            ConfigurationError: If concurrency is smaller than 1
        """
        if concurrency < 1:
            raise ConfigurationError(f"Batch concurrency must be at least 1, got {concurrency}")

        plan = RolloutPlan(concurrency=concurrency)
        if not targets:
            return plan

        batch_count = math.ceil(len(targets) / concurrency)
        batch_size = math.ceil(len(targets) / batch_count)

        for number, start in enumerate(range(0, len(targets), batch_size), 1):
            plan.batches.append(RolloutBatch(
                batch_number=number,
                targets=list(targets[start:start + batch_size])
            ))

        logger.info(
            f"Planned {len(plan.batches)} batches of up to {batch_size} targets "
            f"({len(targets)} targets, concurrency {concurrency})"
        )
        return plan
