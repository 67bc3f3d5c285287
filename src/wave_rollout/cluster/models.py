"""Views over the DeploymentConfig documents returned by the cluster API."""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass

from wave_rollout.utils.errors import NotFoundError, ErrorContext


# Trigger types of apps.openshift.io/v1 DeploymentConfig
TRIGGER_IMAGE_CHANGE = "ImageChange"
TRIGGER_CONFIG_CHANGE = "ConfigChange"


@dataclass(frozen=True)
class DeploymentStatus:
    """Rollout status of a deployment target."""
    generation: int
    ready_replicas: int

    def is_ready_after(self, previous_generation: int) -> bool:
        """Check if a newer generation than the given one has ready replicas."""
        return self.generation > previous_generation and self.ready_replicas > 0


@dataclass(frozen=True)
class TriggerSummary:
    """The rollout triggers configured on a deployment target."""
    automatic_image_change: bool = False
    config_change: bool = False


def deployment_status(dc: Dict[str, Any]) -> DeploymentStatus:
    """Read generation and ready replica count from a DeploymentConfig."""
    status = dc.get('status') or {}
    return DeploymentStatus(
        generation=int(status.get('latestVersion') or 0),
        ready_replicas=int(status.get('readyReplicas') or 0)
    )


def find_container(dc: Dict[str, Any], container_name: Optional[str] = None) -> Dict[str, Any]:
    """Return the pod template container that carries the rolled out image.

    Args:
        dc: DeploymentConfig document
        container_name: Container to use, or None for the first container

    Returns:
        The container dictionary (mutations apply to ``dc``)

    Raises:
        NotFoundError: If the template has no such container
    """
    metadata = dc.get('metadata') or {}
    containers: List[Dict[str, Any]] = (
        ((dc.get('spec') or {}).get('template') or {}).get('spec') or {}
    ).get('containers') or []

    for container in containers:
        if container_name is None or container.get('name') == container_name:
            return container

    raise NotFoundError(
        f"Container {container_name or '#0'} not found in "
        f"{metadata.get('namespace')}/{metadata.get('name')}",
        context=ErrorContext(
            namespace=metadata.get('namespace'),
            name=metadata.get('name'),
            operation='find_container'
        )
    )


def container_image(dc: Dict[str, Any], container_name: Optional[str] = None) -> str:
    """Return the image currently configured on the rolled out container."""
    return find_container(dc, container_name).get('image', '')


def summarize_triggers(dc: Dict[str, Any]) -> TriggerSummary:
    """Summarize the rollout triggers of a DeploymentConfig.

    An image change trigger counts as automatic unless its ``automatic``
    flag is explicitly set to false.
    """
    automatic_image_change = False
    config_change = False

    for trigger in (dc.get('spec') or {}).get('triggers') or []:
        trigger_type = trigger.get('type')
        if trigger_type == TRIGGER_IMAGE_CHANGE:
            params = trigger.get('imageChangeParams') or {}
            if params.get('automatic') is not False:
                automatic_image_change = True
        elif trigger_type == TRIGGER_CONFIG_CHANGE:
            config_change = True

    return TriggerSummary(
        automatic_image_change=automatic_image_change,
        config_change=config_change
    )
