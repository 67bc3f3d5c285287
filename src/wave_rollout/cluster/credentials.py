"""Cluster credential handling and API client construction."""

import os
from typing import Optional

from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.config.config_exception import ConfigException

from wave_rollout.utils.errors import CredentialError
from wave_rollout.utils.logging import get_logger

logger = get_logger(__name__)


class ClusterClientManager:
    """Builds a kubernetes ApiClient from a kubeconfig or a host/token pair."""

    def __init__(
        self,
        host: Optional[str] = None,
        token: Optional[str] = None,
        kubeconfig: Optional[str] = None
    ):
        """Initialize cluster client manager.

        Args:
            host: API server URL, used together with ``token``
            token: Bearer token, used together with ``host``
            kubeconfig: Path to a kubeconfig file
        """
        self.host = host
        self.token = token
        self.kubeconfig = kubeconfig
        self._api_client: Optional[k8s_client.ApiClient] = None

    @property
    def api_client(self) -> k8s_client.ApiClient:
        """Get or create the ApiClient.

        Returns:
            Configured ApiClient

        Raises:
            CredentialError: If neither host/token nor a kubeconfig is usable
        """
        if self._api_client is None:
            self._api_client = k8s_client.ApiClient(self.build_configuration())
        return self._api_client

    def build_configuration(self) -> k8s_client.Configuration:
        """Build the client configuration.

        The kubeconfig is loaded when it exists; a host/token pair then
        overrides its server and credentials but keeps its TLS settings.
        """
        configuration = k8s_client.Configuration()
        use_token = bool(self.host and self.token)

        if not use_token and not self.kubeconfig:
            raise CredentialError(
                "You must configure either kubeconfig or host/token",
                suggestions=[
                    'Pass --kubeconfig or set WAVE_KUBECONFIG',
                    'Or pass both --host and --token',
                ]
            )

        kubeconfig = os.path.expanduser(self.kubeconfig) if self.kubeconfig else None
        if kubeconfig and (not use_token or os.path.exists(kubeconfig)):
            try:
                k8s_config.load_kube_config(
                    config_file=kubeconfig,
                    client_configuration=configuration
                )
            except (ConfigException, OSError) as e:
                raise CredentialError(
                    f"Could not load kubeconfig {kubeconfig}: {e}",
                    cause=e,
                    suggestions=[
                        'Log in with: oc login',
                        'Or pass both --host and --token',
                    ]
                ) from e
            logger.info(f"Loaded kubeconfig {kubeconfig} (host: {configuration.host})")

        if use_token:
            configuration.host = self.host
            configuration.api_key = {'authorization': self.token}
            configuration.api_key_prefix = {'authorization': 'Bearer'}
            logger.info(f"Using token authentication against {self.host}")

        return configuration
