"""Batch executor running the targets of each batch in parallel."""

from typing import Dict, List, Optional
from dataclasses import dataclass, field
from datetime import datetime
from concurrent.futures import ThreadPoolExecutor, as_completed

from wave_rollout.orchestrator.models import OutcomeStatus, RolloutOutcome, Target
from wave_rollout.orchestrator.planner import RolloutBatch, RolloutPlan
from wave_rollout.orchestrator.progress import (
    NullProgressSink,
    ProgressEvent,
    ProgressEventType,
    ProgressSink
)
from wave_rollout.orchestrator.worker import UpdateWorker
from wave_rollout.utils.errors import RolloutError, ErrorContext
from wave_rollout.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class BatchExecutionResult:
    """Result of executing one batch."""

    batch_number: int
    outcomes: Dict[str, RolloutOutcome] = field(default_factory=dict)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: float = 0.0  # seconds

    def get_failed_count(self) -> int:
        """Get number of failed targets."""
        return sum(1 for o in self.outcomes.values() if o.is_failed())

    def has_failures(self) -> bool:
        """Check if batch has any failures."""
        return self.get_failed_count() > 0


class BatchExecutor:
    """Executes rollout plans batch by batch.

    All targets of a batch run concurrently; the next batch starts only once
    every target of the current batch reached a terminal outcome. Failures
    never stop the remaining targets or batches.
    """

    def __init__(self, worker: UpdateWorker, progress_sink: Optional[ProgressSink] = None):
        """Initialize batch executor.

        Args:
            worker: Worker processing a single target
            progress_sink: Receiver of progress events
        """
        self.worker = worker
        self.progress_sink = progress_sink or NullProgressSink()
        self.logger = get_logger(__name__)

    def execute(self, plan: RolloutPlan) -> List[BatchExecutionResult]:
        """Execute a rollout plan.

        Args:
            plan: Plan to execute

        Returns:
            One BatchExecutionResult per batch, in batch order
        """
        results = []

        for batch in plan.batches:
            self.logger.info(
                f"Updating {batch.size()} deployments in batch "
                f"{batch.batch_number}/{len(plan.batches)} ..."
            )
            self.progress_sink.emit(ProgressEvent(
                type=ProgressEventType.BATCH_STARTED,
                batch_number=batch.batch_number,
                total=batch.size()
            ))

            batch_result = self._execute_batch(batch)
            results.append(batch_result)

            self.progress_sink.emit(ProgressEvent(
                type=ProgressEventType.BATCH_COMPLETED,
                batch_number=batch.batch_number,
                total=batch.size()
            ))

            if batch_result.has_failures():
                self.logger.warning(
                    f"Batch {batch.batch_number} completed with "
                    f"{batch_result.get_failed_count()} failures in {batch_result.duration:.1f}s"
                )
            else:
                self.logger.info(
                    f"Batch {batch.batch_number} completed successfully in {batch_result.duration:.1f}s"
                )

        return results

    def _execute_batch(self, batch: RolloutBatch) -> BatchExecutionResult:
        """Run all targets of a batch and wait for every one of them.

        Args:
            batch: Batch to execute

        Returns:
            BatchExecutionResult
        """
        start_time = datetime.utcnow()
        outcomes = {}

        with ThreadPoolExecutor(
            max_workers=max(batch.size(), 1),
            thread_name_prefix=f"batch-{batch.batch_number}"
        ) as executor:
            future_to_target = {}
            for target in batch.targets:
                self.progress_sink.emit(ProgressEvent(
                    type=ProgressEventType.TARGET_STARTED,
                    target=target.key,
                    batch_number=batch.batch_number
                ))
                future = executor.submit(self.worker.process, target, batch.batch_number)
                future_to_target[future] = target

            # Collect results as they complete
            for future in as_completed(future_to_target):
                target = future_to_target[future]
                try:
                    outcome = future.result()
                except Exception as e:
                    self.logger.error(
                        f"Unexpected error updating {target.key}: {str(e)}",
                        extra={'target': target.key}
                    )
                    outcome = self._unexpected_failure(target, batch.batch_number, e)

                outcomes[target.key] = outcome
                self.progress_sink.emit(ProgressEvent(
                    type=ProgressEventType.TARGET_COMPLETED,
                    target=target.key,
                    batch_number=batch.batch_number,
                    status=outcome.status.value,
                    message=outcome.reason
                ))

        end_time = datetime.utcnow()

        return BatchExecutionResult(
            batch_number=batch.batch_number,
            outcomes=outcomes,
            start_time=start_time,
            end_time=end_time,
            duration=(end_time - start_time).total_seconds()
        )

    @staticmethod
    def _unexpected_failure(target: Target, batch_number: int, error: Exception) -> RolloutOutcome:
        return RolloutOutcome(
            namespace=target.namespace,
            name=target.name,
            status=OutcomeStatus.FAILED,
            reason=f"Unexpected error: {str(error)}",
            error=RolloutError(
                message=f"Unexpected error: {str(error)}",
                context=ErrorContext(target=target.key, operation='update'),
                cause=error
            ),
            batch_number=batch_number
        )
