"""Per-target update protocol: conflict-safe image write, rollout, readiness."""

import time
from typing import Optional
from dataclasses import dataclass

from wave_rollout.cluster.client import ClusterClient
from wave_rollout.cluster.models import deployment_status, find_container, summarize_triggers
from wave_rollout.orchestrator.models import RolloutOutcome, Target
from wave_rollout.orchestrator.progress import (
    NullProgressSink,
    ProgressEvent,
    ProgressEventType,
    ProgressSink
)
from wave_rollout.orchestrator.readiness import ReadinessState, ReadinessWaiter
from wave_rollout.utils.errors import (
    ErrorContext,
    ReadinessTimeoutError,
    RolloutError,
    UnsupportedTriggerError,
    error_handler
)
from wave_rollout.utils.logging import get_logger
from wave_rollout.utils.retry import RetryPolicy

logger = get_logger(__name__)


@dataclass
class ImageWrite:
    """What a successful read-modify-write attempt found and did."""

    previous_generation: int
    already_current: bool = False
    config_change_trigger: bool = False


class UpdateWorker:
    """Applies the desired image to one target and waits for it to roll out."""

    def __init__(
        self,
        client: ClusterClient,
        readiness_waiter: ReadinessWaiter,
        retry_policy: Optional[RetryPolicy] = None,
        container: Optional[str] = None,
        progress_sink: Optional[ProgressSink] = None
    ):
        """Initialize update worker.

        Args:
            client: Cluster client
            readiness_waiter: Waiter run after a successful image write
            retry_policy: Policy for retrying on optimistic-concurrency conflicts
            container: Container carrying the image, or None for the first one
            progress_sink: Receiver of per-target progress events
        """
        self.client = client
        self.readiness_waiter = readiness_waiter
        self.retry_policy = retry_policy or RetryPolicy()
        self.container = container
        self.progress_sink = progress_sink or NullProgressSink()

    def process(self, target: Target, batch_number: Optional[int] = None) -> RolloutOutcome:
        """Update a target and wait for it to become ready.

        Never raises: every error ends up in a FAILED outcome.

        Args:
            target: Target to update
            batch_number: Batch the target belongs to, for reporting

        Returns:
            RolloutOutcome for the target
        """
        start = time.monotonic()
        context = ErrorContext(
            target=target.key,
            namespace=target.namespace,
            name=target.name,
            operation='update'
        )
        extra = {'target': target.key, 'batch': batch_number}

        try:
            write = self.retry_policy.execute(self._write_image, target)
        except Exception as e:
            error = error_handler.handle_exception(e, context)
            logger.error(f"Update failed: {error.message}", extra=extra)
            return RolloutOutcome.failed(
                target, error,
                batch_number=batch_number,
                duration=time.monotonic() - start
            )

        if write.already_current:
            logger.info("Already updated by another actor", extra=extra)
            return RolloutOutcome.already_current(
                target.namespace, target.name,
                batch_number=batch_number,
                previous_generation=write.previous_generation,
                duration=time.monotonic() - start
            )

        try:
            if write.config_change_trigger:
                logger.debug("Config change trigger starts the rollout", extra=extra)
            else:
                self.retry_policy.execute(
                    self.client.instantiate_rollout, target.namespace, target.name, True
                )
                logger.info("Instantiated forced rollout", extra=extra)
        except Exception as e:
            error = error_handler.handle_exception(
                e, ErrorContext(
                    target=target.key,
                    namespace=target.namespace,
                    name=target.name,
                    operation='instantiate_rollout'
                )
            )
            logger.error(f"Image written but rollout not started: {error.message}", extra=extra)
            return RolloutOutcome.failed(
                target, error,
                batch_number=batch_number,
                previous_generation=write.previous_generation,
                image_applied=True,
                duration=time.monotonic() - start
            )

        self._emit(ProgressEventType.TARGET_UPDATED, target, batch_number)

        readiness = self.readiness_waiter.wait(
            target.namespace,
            target.name,
            write.previous_generation,
            on_poll=lambda status: self._emit(
                ProgressEventType.TARGET_POLLED, target, batch_number,
                message=f"generation {status.generation}, {status.ready_replicas} ready"
            )
        )
        duration = time.monotonic() - start

        if readiness.state == ReadinessState.READY:
            logger.info(f"Ready after {duration:.1f}s", extra=extra)
            return RolloutOutcome.updated(
                target,
                batch_number=batch_number,
                previous_generation=write.previous_generation,
                duration=duration
            )

        error: RolloutError
        if readiness.state == ReadinessState.TIMED_OUT:
            error = ReadinessTimeoutError(
                f"Failed to get available replicas within {self.readiness_waiter.timeout:.0f}s",
                context=ErrorContext(
                    target=target.key,
                    namespace=target.namespace,
                    name=target.name,
                    operation='readiness'
                ),
                suggestions=[f'Inspect the rollout with: oc rollout status dc/{target.name} -n {target.namespace}']
            )
        else:
            error = readiness.error

        logger.error(f"Readiness check failed: {error.message}", extra=extra)
        return RolloutOutcome.failed(
            target, error,
            batch_number=batch_number,
            previous_generation=write.previous_generation,
            image_applied=True,
            duration=duration
        )

    def _write_image(self, target: Target) -> ImageWrite:
        """One read-modify-write attempt; conflicts propagate to the retry policy."""
        dc = self.client.get_deployment_target(target.namespace, target.name)
        previous_generation = deployment_status(dc).generation

        container = find_container(dc, self.container)
        if container.get('image') == target.desired_image:
            return ImageWrite(previous_generation=previous_generation, already_current=True)

        triggers = summarize_triggers(dc)
        if triggers.automatic_image_change:
            raise UnsupportedTriggerError(
                f"{target.key} has an automatic image change trigger",
                context=ErrorContext(
                    target=target.key,
                    namespace=target.namespace,
                    name=target.name,
                    operation='inspect_triggers'
                )
            )

        container['image'] = target.desired_image
        self.client.update_deployment_target(target.namespace, target.name, dc)
        logger.info(
            f"Image set to {target.desired_image} (generation {previous_generation})",
            extra={'target': target.key, 'operation': 'update'}
        )

        return ImageWrite(
            previous_generation=previous_generation,
            config_change_trigger=triggers.config_change
        )

    def _emit(
        self,
        event_type: ProgressEventType,
        target: Target,
        batch_number: Optional[int],
        message: Optional[str] = None
    ) -> None:
        self.progress_sink.emit(ProgressEvent(
            type=event_type,
            target=target.key,
            batch_number=batch_number,
            message=message
        ))
