"""
Tests for the rollout orchestrator.
"""

import pytest
from unittest.mock import Mock

from wave_rollout.orchestrator.models import OutcomeStatus, RolloutRequest
from wave_rollout.orchestrator.orchestrator import RolloutOrchestrator
from wave_rollout.orchestrator.progress import CollectingProgressSink, ProgressEventType
from wave_rollout.utils.errors import (
    ConfigurationError,
    InvalidReferenceFormat,
    ResolutionError,
    UnsupportedTriggerError,
)

OLD = "registry/images/api@sha256:old"
NEW = "registry/images/api@sha256:new"


class TestRolloutOrchestrator:
    """Test end-to-end rollouts against the fake cluster."""

    @pytest.fixture
    def fleet(self, cluster):
        cluster.image_tags[("images", "api:v1")] = OLD
        cluster.image_tags[("images", "api:v2")] = NEW
        for i in range(12):
            cluster.add_dc(f"team-{i:02d}", "api", OLD)
        cluster.add_dc("infra", "api", OLD)
        return cluster

    @pytest.fixture
    def sink(self):
        return CollectingProgressSink()

    @pytest.fixture
    def orchestrator(self, fleet, waiter, fast_retry, sink):
        return RolloutOrchestrator(
            fleet,
            progress_sink=sink,
            retry_policy=fast_retry,
            readiness_waiter=waiter
        )

    @pytest.fixture
    def request_v2(self):
        return RolloutRequest(
            namespace_pattern="^team-",
            name="api",
            current_image="images/api:v1",
            new_image="images/api:v2",
            batch_concurrency=5
        )

    def test_rolls_out_to_all_matching_targets(self, orchestrator, fleet, request_v2):
        report = orchestrator.run(request_v2)

        assert report.updated == 12
        assert report.failed == 0
        assert report.namespace_mismatch == 1
        assert report.batch_count == 3
        assert report.new_image == NEW
        assert report.current_image == OLD
        assert not report.has_failures()
        assert fleet.image_of("infra", "api") == OLD
        assert all(fleet.image_of(f"team-{i:02d}", "api") == NEW for i in range(12))

    def test_outcomes_follow_worklist_order(self, orchestrator, request_v2):
        report = orchestrator.run(request_v2)

        assert [o.key for o in report.outcomes] == [f"team-{i:02d}/api" for i in range(12)]
        assert [o.batch_number for o in report.outcomes] == [1] * 4 + [2] * 4 + [3] * 4

    def test_second_run_is_idempotent(self, orchestrator, fleet, request_v2):
        orchestrator.run(request_v2)
        fleet.calls.clear()

        report = orchestrator.run(request_v2)

        assert report.updated == 0
        assert report.already_current == 12
        assert report.image_mismatch == 0
        assert report.batch_count == 0
        assert fleet.calls_of("update_deployment_target") == []

    def test_unsupported_trigger_is_isolated(self, orchestrator, fleet, request_v2):
        fleet.dcs[("team-01", "api")]["spec"]["triggers"] = [
            {"type": "ImageChange", "imageChangeParams": {"automatic": True}}
        ]

        report = orchestrator.run(request_v2)

        assert report.failed == 1
        assert report.updated == 11
        failed = report.get_failed_outcomes()
        assert [o.key for o in failed] == ["team-01/api"]
        assert isinstance(failed[0].error, UnsupportedTriggerError)
        assert report.has_failures()

    def test_batches_run_sequentially(self, orchestrator, sink, request_v2):
        report = orchestrator.run(request_v2)

        events = sink.events
        for batch_number in (2, 3):
            first_start = min(
                i for i, e in enumerate(events)
                if e.type == ProgressEventType.TARGET_STARTED and e.batch_number == batch_number
            )
            previous_completions = [
                i for i, e in enumerate(events)
                if e.type == ProgressEventType.TARGET_COMPLETED and e.batch_number == batch_number - 1
            ]
            assert len(previous_completions) == 4
            assert max(previous_completions) < first_start
        assert len(report.outcomes) == 12

    def test_declined_confirmation_changes_nothing(self, fleet, waiter, fast_retry, request_v2):
        confirm = Mock(return_value=False)
        orchestrator = RolloutOrchestrator(
            fleet, confirm=confirm, retry_policy=fast_retry, readiness_waiter=waiter
        )

        report = orchestrator.run(request_v2)

        assert report.cancelled
        assert report.updated == 0
        confirm.assert_called_once()
        assert "12 deployments" in confirm.call_args[0][0]
        assert fleet.calls_of("update_deployment_target") == []

    def test_no_confirmation_when_nothing_to_update(self, fleet, waiter, request_v2):
        confirm = Mock(return_value=True)
        orchestrator = RolloutOrchestrator(fleet, confirm=confirm, readiness_waiter=waiter)

        report = orchestrator.run(RolloutRequest(
            namespace_pattern="^nobody$", name="api", new_image="images/api:v2"
        ))

        confirm.assert_not_called()
        assert report.outcomes == []
        assert report.namespace_mismatch == 13

    def test_invalid_reference_aborts_before_scan(self, orchestrator, fleet):
        with pytest.raises(InvalidReferenceFormat):
            orchestrator.run(RolloutRequest(namespace_pattern=".*", name="api", new_image="api-v2"))

        assert fleet.calls == []

    def test_unresolvable_current_image_aborts(self, orchestrator, fleet):
        with pytest.raises(ResolutionError):
            orchestrator.run(RolloutRequest(
                namespace_pattern=".*", name="api",
                current_image="images/api:v0", new_image="images/api:v2"
            ))

        assert fleet.calls_of("list_projects") == []
        assert fleet.calls_of("update_deployment_target") == []

    def test_invalid_concurrency_aborts_before_updates(self, orchestrator, fleet):
        with pytest.raises(ConfigurationError):
            orchestrator.run(RolloutRequest(
                namespace_pattern="^team-", name="api", new_image="images/api:v2", batch_concurrency=0
            ))

        assert fleet.calls_of("update_deployment_target") == []

    def test_summary_counts(self, orchestrator, fleet, request_v2):
        fleet.dcs[("team-03", "api")]["spec"]["template"]["spec"]["containers"][0]["image"] = NEW
        fleet.dcs[("team-04", "api")]["spec"]["template"]["spec"]["containers"][0]["image"] = "elsewhere"
        fleet.never_ready.add(("team-05", "api"))

        report = orchestrator.run(request_v2)

        assert report.get_summary() == {
            "namespace_mismatch": 1,
            "image_mismatch": 1,
            "not_found": 0,
            "already_current": 1,
            "updated": 9,
            "skipped": 1,
            "failed": 1,
        }
        statuses = {o.key: o.status for o in report.outcomes}
        assert statuses["team-05/api"] == OutcomeStatus.FAILED
        assert statuses["team-03/api"] == OutcomeStatus.ALREADY_CURRENT
        assert statuses["team-04/api"] == OutcomeStatus.SKIPPED

    def test_progress_stream(self, orchestrator, sink, request_v2):
        orchestrator.run(request_v2)

        assert len(sink.of_type(ProgressEventType.SELECTION_COMPLETED)) == 1
        assert len(sink.of_type(ProgressEventType.BATCH_STARTED)) == 3
        assert len(sink.of_type(ProgressEventType.TARGET_COMPLETED)) == 12
        completed = sink.of_type(ProgressEventType.ROLLOUT_COMPLETED)
        assert [e.status for e in completed] == ["success"]
