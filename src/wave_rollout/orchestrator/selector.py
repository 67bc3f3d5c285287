"""Selection of the deployment targets a rollout applies to."""

import re
from typing import Optional

from wave_rollout.cluster.client import ClusterClient
from wave_rollout.cluster.models import container_image
from wave_rollout.orchestrator.models import RolloutOutcome, SelectionResult, Target
from wave_rollout.utils.errors import ConfigurationError, NotFoundError
from wave_rollout.utils.logging import get_logger

logger = get_logger(__name__)


class TargetSelector:
    """Scans all projects for a named deployment and builds the worklist."""

    def __init__(self, client: ClusterClient, container: Optional[str] = None):
        """Initialize target selector.

        Args:
            client: Cluster client used for the read-only scan
            container: Container carrying the image, or None for the first one
        """
        self.client = client
        self.container = container

    def select(
        self,
        namespace_pattern: str,
        name: str,
        new_image: str,
        current_image: Optional[str] = None
    ) -> SelectionResult:
        """Build the worklist.

        Args:
            namespace_pattern: Regular expression projects must match
            name: Name of the deployment target in each project
            new_image: Resolved locator of the image to roll out
            current_image: Resolved locator targets must currently run, if any

        Returns:
            SelectionResult with the targets, the outcomes decided during the
            scan and the informational counters

        Raises:
            ConfigurationError: If the pattern is not a valid regular expression
            RemoteError: If listing projects or reading a target fails
        """
        try:
            pattern = re.compile(namespace_pattern)
        except re.error as e:
            raise ConfigurationError(
                f"Argument to --projects ({namespace_pattern}) is not a valid regex expression: {e}",
                cause=e
            ) from e

        projects = self.client.list_projects()
        result = SelectionResult(total_projects=len(projects))
        logger.info(f"Found {len(projects)} projects in total")

        for project in projects:
            if not pattern.search(project):
                result.namespace_mismatch += 1
                continue

            result.matching_projects += 1
            target_key = f"{project}/{name}"

            try:
                dc = self.client.get_deployment_target(project, name)
                deployed_image = container_image(dc, self.container)
            except NotFoundError:
                logger.debug(f"{name} not found in project {project}")
                result.not_found += 1
                continue

            # Already-current wins over a current-image mismatch
            if deployed_image == new_image:
                logger.info(
                    "Already at new image",
                    extra={'target': target_key, 'operation': 'select'}
                )
                result.already_current += 1
                result.outcomes.append(RolloutOutcome.already_current(project, name))
                continue

            if current_image and deployed_image != current_image:
                logger.info(
                    f"Not matching current image (running {deployed_image})",
                    extra={'target': target_key, 'operation': 'select'}
                )
                result.image_mismatch += 1
                result.outcomes.append(RolloutOutcome.skipped(
                    project, name, f"running {deployed_image}, not {current_image}"
                ))
                continue

            logger.info("Found", extra={'target': target_key, 'operation': 'select'})
            result.targets.append(Target(
                namespace=project,
                name=name,
                current_image=deployed_image,
                desired_image=new_image
            ))

        logger.info(
            f"Found {result.matching_projects} projects matching '{namespace_pattern}', "
            f"{len(result.targets)} targets to update"
        )
        return result
