"""Main orchestrator that coordinates image resolution, selection and batches."""

from datetime import datetime
from typing import Optional

from wave_rollout.cluster.client import ClusterClient
from wave_rollout.orchestrator.executor import BatchExecutor
from wave_rollout.orchestrator.models import RolloutReport, RolloutRequest
from wave_rollout.orchestrator.planner import BatchPlanner, RolloutPlan
from wave_rollout.orchestrator.progress import (
    NullProgressSink,
    ProgressEvent,
    ProgressEventType,
    ProgressSink,
    UserConfirmation,
    always_confirm
)
from wave_rollout.orchestrator.readiness import ReadinessWaiter
from wave_rollout.orchestrator.resolver import ImageResolver
from wave_rollout.orchestrator.selector import TargetSelector
from wave_rollout.orchestrator.worker import UpdateWorker
from wave_rollout.utils.logging import get_logger
from wave_rollout.utils.retry import RetryPolicy

logger = get_logger(__name__)


class RolloutOrchestrator:
    """Rolls a new image out to every matching deployment target."""

    def __init__(
        self,
        client: ClusterClient,
        confirm: UserConfirmation = always_confirm,
        progress_sink: Optional[ProgressSink] = None,
        retry_policy: Optional[RetryPolicy] = None,
        readiness_waiter: Optional[ReadinessWaiter] = None
    ):
        """Initialize rollout orchestrator.

        Args:
            client: Cluster client
            confirm: Asked once before the first mutation; False cancels the run
            progress_sink: Receiver of progress events
            retry_policy: Conflict retry policy for image writes
            readiness_waiter: Waiter used after each image write
        """
        self.client = client
        self.confirm = confirm
        self.progress_sink = progress_sink or NullProgressSink()
        self.retry_policy = retry_policy or RetryPolicy()
        self.readiness_waiter = readiness_waiter or ReadinessWaiter(client)

        self.resolver = ImageResolver(client)
        self.planner = BatchPlanner()

        self.logger = get_logger(__name__)

    def run(self, request: RolloutRequest) -> RolloutReport:
        """Run a rollout.

        Image resolution, selection and planning happen before anything is
        changed; errors there propagate and abort the run. Errors of single
        targets are recorded in the report.

        Args:
            request: Rollout parameters

        Returns:
            RolloutReport with one outcome per selected or skipped target

        Raises:
            InvalidReferenceFormat: If an image reference is malformed
            ResolutionError: If an image reference cannot be resolved
            ConfigurationError: If the project pattern or concurrency is invalid
            RemoteError: If the cluster scan fails
        """
        start_time = datetime.utcnow()
        image_filter = (
            f'having image "{request.current_image}"' if request.current_image else "having any image"
        )
        self.logger.info(
            f'Rolling out image "{request.new_image}" to all deployments named '
            f'"{request.name}" ({image_filter}) in projects matching "{request.namespace_pattern}"'
        )

        new_image = self.resolver.resolve(request.new_image)
        current_image = None
        if request.current_image:
            current_image = self.resolver.resolve(request.current_image)

        selector = TargetSelector(self.client, container=request.container)
        selection = selector.select(
            namespace_pattern=request.namespace_pattern,
            name=request.name,
            new_image=new_image,
            current_image=current_image
        )
        plan = self.planner.create_plan(selection.targets, request.batch_concurrency)

        report = RolloutReport(
            new_image=new_image,
            current_image=current_image,
            outcomes=list(selection.outcomes),
            batch_count=len(plan.batches),
            total_projects=selection.total_projects,
            matching_projects=selection.matching_projects,
            namespace_mismatch=selection.namespace_mismatch,
            image_mismatch=selection.image_mismatch,
            not_found=selection.not_found,
            start_time=start_time
        )

        self.progress_sink.emit(ProgressEvent(
            type=ProgressEventType.SELECTION_COMPLETED,
            total=plan.get_total_targets(),
            message=f"{selection.already_current} already current, "
                    f"{selection.image_mismatch} not matching current image"
        ))

        if not plan.has_targets():
            self.logger.info("Nothing to update")
            return self._finish(report)

        if not self.confirm(self._confirmation_prompt(plan)):
            self.logger.info("Rollout cancelled before any change was made")
            report.cancelled = True
            return self._finish(report)

        worker = UpdateWorker(
            client=self.client,
            readiness_waiter=self.readiness_waiter,
            retry_policy=self.retry_policy,
            container=request.container,
            progress_sink=self.progress_sink
        )
        executor = BatchExecutor(worker, progress_sink=self.progress_sink)

        for batch, batch_result in zip(plan.batches, executor.execute(plan)):
            # Keep worklist order within a batch
            for target in batch.targets:
                report.outcomes.append(batch_result.outcomes[target.key])

        return self._finish(report)

    def _finish(self, report: RolloutReport) -> RolloutReport:
        report.end_time = datetime.utcnow()
        report.duration = (report.end_time - report.start_time).total_seconds()

        summary = report.get_summary()
        if report.has_failures():
            self.logger.error(f"Rollout finished with {report.failed} failed targets: {summary}")
        else:
            self.logger.info(f"Rollout finished in {report.duration:.1f}s: {summary}")

        self.progress_sink.emit(ProgressEvent(
            type=ProgressEventType.ROLLOUT_COMPLETED,
            total=len(report.outcomes),
            status='failed' if report.has_failures() else 'success'
        ))
        return report

    @staticmethod
    def _confirmation_prompt(plan: RolloutPlan) -> str:
        return (
            f"Update {plan.get_total_targets()} deployments in "
            f"{len(plan.batches)} batches (concurrency {plan.concurrency}). Do you want to continue?"
        )
