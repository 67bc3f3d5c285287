"""Orchestrator module for rollout planning and execution."""

from wave_rollout.orchestrator.models import (
    RolloutRequest,
    Target,
    OutcomeStatus,
    RolloutOutcome,
    SelectionResult,
    RolloutReport
)
from wave_rollout.orchestrator.progress import (
    ProgressEventType,
    ProgressEvent,
    ProgressSink,
    NullProgressSink,
    CollectingProgressSink,
    UserConfirmation,
    always_confirm
)
from wave_rollout.orchestrator.resolver import ImageResolver
from wave_rollout.orchestrator.selector import TargetSelector
from wave_rollout.orchestrator.planner import BatchPlanner, RolloutBatch, RolloutPlan
from wave_rollout.orchestrator.readiness import ReadinessWaiter, ReadinessResult, ReadinessState
from wave_rollout.orchestrator.worker import UpdateWorker
from wave_rollout.orchestrator.executor import BatchExecutor, BatchExecutionResult
from wave_rollout.orchestrator.orchestrator import RolloutOrchestrator

__all__ = [
    # Model
    'RolloutRequest',
    'Target',
    'OutcomeStatus',
    'RolloutOutcome',
    'SelectionResult',
    'RolloutReport',

    # Hooks
    'ProgressEventType',
    'ProgressEvent',
    'ProgressSink',
    'NullProgressSink',
    'CollectingProgressSink',
    'UserConfirmation',
    'always_confirm',

    # Selection and planning
    'ImageResolver',
    'TargetSelector',
    'BatchPlanner',
    'RolloutBatch',
    'RolloutPlan',

    # Execution
    'ReadinessWaiter',
    'ReadinessResult',
    'ReadinessState',
    'UpdateWorker',
    'BatchExecutor',
    'BatchExecutionResult',

    # Main orchestrator
    'RolloutOrchestrator',
]
