"""
Pytest configuration and fixtures for wave_rollout tests.
"""

import copy
import threading
from typing import Any, Dict, List, Optional

import pytest

from wave_rollout.cluster.client import ClusterClient
from wave_rollout.orchestrator.readiness import ReadinessWaiter
from wave_rollout.utils.errors import ConflictError, NotFoundError, RemoteError
from wave_rollout.utils.retry import RetryPolicy


def make_dc(
    namespace: str,
    name: str,
    image: str,
    triggers: Optional[List[Dict[str, Any]]] = None,
    latest_version: int = 1,
    ready_replicas: int = 1,
    containers: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    """Build a minimal DeploymentConfig document."""
    return {
        'apiVersion': 'apps.openshift.io/v1',
        'kind': 'DeploymentConfig',
        'metadata': {'namespace': namespace, 'name': name, 'resourceVersion': '1'},
        'spec': {
            'triggers': triggers if triggers is not None else [],
            'template': {
                'spec': {
                    'containers': containers or [{'name': name, 'image': image}],
                },
            },
        },
        'status': {'latestVersion': latest_version, 'readyReplicas': ready_replicas},
    }


class FakeClusterClient(ClusterClient):
    """In-memory cluster with resourceVersion checks and rollout simulation."""

    def __init__(self):
        self._lock = threading.Lock()
        self.projects: List[str] = []
        self.dcs: Dict[tuple, Dict[str, Any]] = {}
        self.image_tags: Dict[tuple, str] = {}
        self.pending_conflicts: Dict[tuple, int] = {}
        self.get_errors: Dict[tuple, Exception] = {}
        self.status_errors: Dict[tuple, Exception] = {}
        self.never_ready: set = set()
        self.calls: List[tuple] = []

    # Setup helpers

    def add_dc(self, namespace: str, name: str, image: str, **kwargs) -> Dict[str, Any]:
        if namespace not in self.projects:
            self.projects.append(namespace)
        dc = make_dc(namespace, name, image, **kwargs)
        self.dcs[(namespace, name)] = dc
        return dc

    def image_of(self, namespace: str, name: str) -> str:
        return self.dcs[(namespace, name)]['spec']['template']['spec']['containers'][0]['image']

    def calls_of(self, operation: str) -> List[tuple]:
        with self._lock:
            return [call for call in self.calls if call[0] == operation]

    def _record(self, *call):
        with self._lock:
            self.calls.append(call)

    # ClusterClient

    def list_projects(self) -> List[str]:
        self._record('list_projects')
        return list(self.projects)

    def get_deployment_target(self, namespace: str, name: str) -> Dict[str, Any]:
        self._record('get_deployment_target', namespace, name)
        if (namespace, name) in self.get_errors:
            raise self.get_errors[(namespace, name)]
        with self._lock:
            if (namespace, name) not in self.dcs:
                raise NotFoundError(f"{namespace}/{name} not found")
            return copy.deepcopy(self.dcs[(namespace, name)])

    def get_image_tag(self, namespace: str, tag: str) -> Dict[str, Any]:
        self._record('get_image_tag', namespace, tag)
        if (namespace, tag) not in self.image_tags:
            raise NotFoundError(f"imagestreamtag {namespace}/{tag} not found")
        return {'image': {'dockerImageReference': self.image_tags[(namespace, tag)]}}

    def update_deployment_target(self, namespace: str, name: str, body: Dict[str, Any]) -> Dict[str, Any]:
        self._record('update_deployment_target', namespace, name)
        with self._lock:
            key = (namespace, name)
            current = self.dcs[key]
            if self.pending_conflicts.get(key, 0) > 0:
                self.pending_conflicts[key] -= 1
                current['metadata']['resourceVersion'] = str(int(current['metadata']['resourceVersion']) + 1)
                raise ConflictError(f"{namespace}/{name} was modified")
            if body['metadata']['resourceVersion'] != current['metadata']['resourceVersion']:
                raise ConflictError(f"{namespace}/{name} was modified")

            stored = copy.deepcopy(body)
            stored['metadata']['resourceVersion'] = str(int(current['metadata']['resourceVersion']) + 1)
            stored['status'] = current['status']
            self.dcs[key] = stored

            if any(t.get('type') == 'ConfigChange' for t in stored['spec']['triggers']):
                self._roll_out(key)
            return copy.deepcopy(stored)

    def instantiate_rollout(self, namespace: str, name: str, force: bool = True) -> Dict[str, Any]:
        self._record('instantiate_rollout', namespace, name, force)
        with self._lock:
            self._roll_out((namespace, name))
            return copy.deepcopy(self.dcs[(namespace, name)])

    def get_deployment_target_status(self, namespace: str, name: str):
        self._record('get_deployment_target_status', namespace, name)
        if (namespace, name) in self.status_errors:
            raise self.status_errors[(namespace, name)]
        return super().get_deployment_target_status(namespace, name)

    def _roll_out(self, key: tuple):
        status = self.dcs[key]['status']
        status['latestVersion'] += 1
        status['readyReplicas'] = 0 if key in self.never_ready else 1


class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self):
        self._lock = threading.Lock()
        self.now = 0.0
        self.sleeps: List[float] = []

    def time(self) -> float:
        with self._lock:
            return self.now

    def sleep(self, seconds: float) -> None:
        with self._lock:
            self.sleeps.append(seconds)
            self.now += seconds


@pytest.fixture
def cluster():
    """Empty fake cluster."""
    return FakeClusterClient()


@pytest.fixture
def clock():
    """Fake clock for readiness waits."""
    return FakeClock()


@pytest.fixture
def fast_retry():
    """Conflict retry policy without delays."""
    return RetryPolicy(max_attempts=10, base_delay=0, max_delay=0, jitter=False, sleep=lambda _: None)


@pytest.fixture
def waiter(cluster, clock):
    """Readiness waiter on the fake cluster and fake clock."""
    return ReadinessWaiter(cluster, interval=5.0, timeout=300.0, clock=clock.time, sleep=clock.sleep)


@pytest.fixture
def remote_error():
    """Factory for generic remote errors."""
    def _make(message: str = "connection refused") -> RemoteError:
        return RemoteError(message)
    return _make
