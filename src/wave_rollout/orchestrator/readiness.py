"""Waiting for an updated target to run a new version with ready replicas."""

import time
from typing import Callable, Optional
from dataclasses import dataclass
from enum import Enum

from wave_rollout.cluster.client import ClusterClient
from wave_rollout.cluster.models import DeploymentStatus
from wave_rollout.utils.errors import ErrorContext, RolloutError, error_handler
from wave_rollout.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL = 5.0  # seconds
DEFAULT_TIMEOUT = 300.0  # seconds


class ReadinessState(Enum):
    """States of the readiness wait."""
    POLLING = "polling"
    READY = "ready"
    TIMED_OUT = "timed_out"
    ERROR = "error"


@dataclass
class ReadinessResult:
    """Terminal state of a readiness wait."""

    state: ReadinessState
    polls: int = 0
    elapsed: float = 0.0  # seconds
    last_status: Optional[DeploymentStatus] = None
    error: Optional[RolloutError] = None

    def is_ready(self) -> bool:
        return self.state == ReadinessState.READY


# Called after every successful poll
PollCallback = Callable[[DeploymentStatus], None]


class ReadinessWaiter:
    """Polls a target until a newer generation reports ready replicas."""

    def __init__(
        self,
        client: ClusterClient,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        """Initialize readiness waiter.

        Args:
            client: Cluster client used to read target status
            interval: Seconds between polls
            timeout: Seconds after which the wait gives up
            clock: Monotonic clock returning seconds
            sleep: Function used to wait between polls
        """
        self.client = client
        self.interval = interval
        self.timeout = timeout
        self.clock = clock
        self.sleep = sleep

    def wait(
        self,
        namespace: str,
        name: str,
        previous_generation: int,
        on_poll: Optional[PollCallback] = None
    ) -> ReadinessResult:
        """Wait for a target to become ready.

        Args:
            namespace: Project of the target
            name: Name of the target
            previous_generation: Generation recorded before the update
            on_poll: Optional callback receiving every polled status

        Returns:
            ReadinessResult in state READY, TIMED_OUT or ERROR
        """
        target_key = f"{namespace}/{name}"
        start = self.clock()
        deadline = start + self.timeout
        result = ReadinessResult(state=ReadinessState.POLLING)

        while result.state == ReadinessState.POLLING:
            self.sleep(self.interval)
            result.polls += 1

            try:
                status = self.client.get_deployment_target_status(namespace, name)
            except Exception as e:
                result.state = ReadinessState.ERROR
                result.error = error_handler.handle_exception(
                    e,
                    ErrorContext(
                        target=target_key,
                        namespace=namespace,
                        name=name,
                        operation='readiness'
                    )
                )
                break

            result.last_status = status
            logger.debug(
                f"Poll {result.polls}: generation {status.generation} "
                f"(before {previous_generation}), {status.ready_replicas} ready",
                extra={'target': target_key, 'operation': 'readiness'}
            )
            if on_poll:
                on_poll(status)

            if status.is_ready_after(previous_generation):
                result.state = ReadinessState.READY
            elif self.clock() > deadline:
                result.state = ReadinessState.TIMED_OUT

        result.elapsed = self.clock() - start
        logger.info(
            f"Readiness wait ended {result.state.value} after {result.polls} polls "
            f"({result.elapsed:.1f}s)",
            extra={'target': target_key, 'operation': 'readiness'}
        )
        return result
