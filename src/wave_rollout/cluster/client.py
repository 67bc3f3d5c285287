"""Cluster client interface and its OpenShift implementation."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from kubernetes import client as k8s_client

from wave_rollout.cluster.models import DeploymentStatus, deployment_status
from wave_rollout.utils.errors import ErrorContext, error_handler
from wave_rollout.utils.logging import get_logger

logger = get_logger(__name__)


class ClusterClient(ABC):
    """Capabilities the rollout engine needs from the cluster control plane."""

    @abstractmethod
    def list_projects(self) -> List[str]:
        """List the names of all projects visible to the caller."""
        pass

    @abstractmethod
    def get_deployment_target(self, namespace: str, name: str) -> Dict[str, Any]:
        """Fetch a deployment target.

        Args:
            namespace: Project of the target
            name: Name of the target

        Returns:
            The target document, including ``metadata.resourceVersion``

        Raises:
            NotFoundError: If the target does not exist
            RemoteError: On any other API failure
        """
        pass

    @abstractmethod
    def get_image_tag(self, namespace: str, tag: str) -> Dict[str, Any]:
        """Fetch an image stream tag (``name:tag``) from a project."""
        pass

    @abstractmethod
    def update_deployment_target(
        self,
        namespace: str,
        name: str,
        body: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Replace a deployment target.

        The write is conditional on ``body.metadata.resourceVersion``.

        Raises:
            ConflictError: If the target changed since it was read
        """
        pass

    @abstractmethod
    def instantiate_rollout(self, namespace: str, name: str, force: bool = True) -> Dict[str, Any]:
        """Request a new rollout of a deployment target."""
        pass

    def get_deployment_target_status(self, namespace: str, name: str) -> DeploymentStatus:
        """Fetch the rollout status of a deployment target."""
        return deployment_status(self.get_deployment_target(namespace, name))


class OpenShiftClusterClient(ClusterClient):
    """ClusterClient backed by the OpenShift APIs through the kubernetes client."""

    APPS_GROUP = "apps.openshift.io"
    IMAGE_GROUP = "image.openshift.io"
    PROJECT_GROUP = "project.openshift.io"
    VERSION = "v1"

    def __init__(self, api_client: k8s_client.ApiClient):
        """Initialize OpenShift client.

        Args:
            api_client: Configured kubernetes ApiClient
        """
        self.api_client = api_client
        self.custom_objects = k8s_client.CustomObjectsApi(api_client)

    def list_projects(self) -> List[str]:
        try:
            projects = self.custom_objects.list_cluster_custom_object(
                self.PROJECT_GROUP, self.VERSION, "projects"
            )
        except Exception as e:
            raise error_handler.handle_exception(
                e, ErrorContext(operation='list_projects')
            ) from e

        names = [item['metadata']['name'] for item in projects.get('items', [])]
        logger.debug(f"Listed {len(names)} projects")
        return names

    def get_deployment_target(self, namespace: str, name: str) -> Dict[str, Any]:
        try:
            return self.custom_objects.get_namespaced_custom_object(
                self.APPS_GROUP, self.VERSION, namespace, "deploymentconfigs", name
            )
        except Exception as e:
            raise error_handler.handle_exception(
                e, self._context(namespace, name, 'get_deployment_target')
            ) from e

    def get_image_tag(self, namespace: str, tag: str) -> Dict[str, Any]:
        try:
            return self.custom_objects.get_namespaced_custom_object(
                self.IMAGE_GROUP, self.VERSION, namespace, "imagestreamtags", tag
            )
        except Exception as e:
            raise error_handler.handle_exception(
                e, self._context(namespace, tag, 'get_image_tag')
            ) from e

    def update_deployment_target(
        self,
        namespace: str,
        name: str,
        body: Dict[str, Any]
    ) -> Dict[str, Any]:
        try:
            return self.custom_objects.replace_namespaced_custom_object(
                self.APPS_GROUP, self.VERSION, namespace, "deploymentconfigs", name, body
            )
        except Exception as e:
            raise error_handler.handle_exception(
                e, self._context(namespace, name, 'update_deployment_target')
            ) from e

    def instantiate_rollout(self, namespace: str, name: str, force: bool = True) -> Dict[str, Any]:
        body = {
            'kind': 'DeploymentRequest',
            'apiVersion': f'{self.APPS_GROUP}/{self.VERSION}',
            'name': name,
            'latest': True,
            'force': force,
        }
        try:
            # The instantiate subresource has no generated binding
            return self.api_client.call_api(
                '/apis/{group}/{version}/namespaces/{namespace}/deploymentconfigs/{name}/instantiate',
                'POST',
                path_params={
                    'group': self.APPS_GROUP,
                    'version': self.VERSION,
                    'namespace': namespace,
                    'name': name,
                },
                header_params={
                    'Accept': 'application/json',
                    'Content-Type': 'application/json',
                },
                body=body,
                response_type='object',
                auth_settings=['BearerToken'],
                _return_http_data_only=True,
            )
        except Exception as e:
            raise error_handler.handle_exception(
                e, self._context(namespace, name, 'instantiate_rollout')
            ) from e

    @staticmethod
    def _context(namespace: str, name: str, operation: str) -> ErrorContext:
        return ErrorContext(
            target=f"{namespace}/{name}",
            namespace=namespace,
            name=name,
            operation=operation
        )
