"""
Tests for DeploymentConfig document views.
"""

import pytest

from wave_rollout.cluster.models import (
    DeploymentStatus,
    container_image,
    deployment_status,
    find_container,
    summarize_triggers,
)
from wave_rollout.utils.errors import NotFoundError

from conftest import make_dc


class TestDeploymentConfigViews:
    """Test reading images, triggers and status from documents."""

    def test_first_container_by_default(self):
        dc = make_dc("team-a", "api", "img", containers=[
            {"name": "app", "image": "app:1"},
            {"name": "sidecar", "image": "proxy:1"},
        ])

        assert container_image(dc) == "app:1"
        assert container_image(dc, "sidecar") == "proxy:1"

    def test_found_container_is_live(self):
        dc = make_dc("team-a", "api", "app:1")

        find_container(dc)["image"] = "app:2"

        assert container_image(dc) == "app:2"

    def test_missing_container(self):
        with pytest.raises(NotFoundError):
            find_container(make_dc("team-a", "api", "img"), "other")

        with pytest.raises(NotFoundError):
            container_image(make_dc("team-a", "api", "img", containers=[]))

    def test_status(self):
        assert deployment_status(make_dc("a", "b", "c", latest_version=7, ready_replicas=2)) == DeploymentStatus(7, 2)
        assert deployment_status({}) == DeploymentStatus(0, 0)

    @pytest.mark.parametrize("generation, ready, expected", [
        (4, 1, True),
        (4, 0, False),
        (3, 1, False),
        (2, 3, False),
    ])
    def test_is_ready_after(self, generation, ready, expected):
        assert DeploymentStatus(generation, ready).is_ready_after(3) is expected

    @pytest.mark.parametrize("triggers, automatic, config", [
        ([], False, False),
        ([{"type": "ConfigChange"}], False, True),
        ([{"type": "ImageChange", "imageChangeParams": {"automatic": True}}], True, False),
        ([{"type": "ImageChange", "imageChangeParams": {}}], True, False),
        ([{"type": "ImageChange"}], True, False),
        ([{"type": "ImageChange", "imageChangeParams": {"automatic": False}}, {"type": "ConfigChange"}], False, True),
    ])
    def test_summarize_triggers(self, triggers, automatic, config):
        summary = summarize_triggers(make_dc("a", "b", "c", triggers=triggers))

        assert summary.automatic_image_change is automatic
        assert summary.config_change is config
