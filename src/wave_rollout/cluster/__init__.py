"""Cluster access: client interface, OpenShift implementation and credentials."""

from wave_rollout.cluster.client import ClusterClient, OpenShiftClusterClient
from wave_rollout.cluster.credentials import ClusterClientManager
from wave_rollout.cluster.models import (
    DeploymentStatus,
    TriggerSummary,
    container_image,
    deployment_status,
    find_container,
    summarize_triggers
)

__all__ = [
    'ClusterClient',
    'OpenShiftClusterClient',
    'ClusterClientManager',
    'DeploymentStatus',
    'TriggerSummary',
    'container_image',
    'deployment_status',
    'find_container',
    'summarize_triggers',
]
