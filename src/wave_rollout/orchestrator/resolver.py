"""Resolution of image references to comparable image locators."""

from wave_rollout.cluster.client import ClusterClient
from wave_rollout.utils.errors import (
    ErrorContext,
    InvalidReferenceFormat,
    ResolutionError,
    error_handler
)
from wave_rollout.utils.logging import get_logger

logger = get_logger(__name__)

DIGEST_MARKER = "@sha256:"


class ImageResolver:
    """Turns ``namespace/name:tag`` references into digest image locators."""

    def __init__(self, client: ClusterClient):
        """Initialize image resolver.

        Args:
            client: Cluster client used to look up image stream tags
        """
        self.client = client

    def resolve(self, reference: str) -> str:
        """Resolve an image reference.

        Digest references are returned unchanged. Tag references are looked
        up in the image stream tag of the given namespace.

        Args:
            reference: ``namespace/name:tag`` or a reference containing ``@sha256:``

        Returns:
            The image locator to compare deployed images against

        Raises:
            InvalidReferenceFormat: If the reference has the wrong shape
            ResolutionError: If the image stream tag cannot be fetched
        """
        reference = (reference or '').strip()

        if DIGEST_MARKER in reference:
            logger.debug(f"{reference} is already a digest reference")
            return reference

        namespace, tag = self.split_reference(reference)

        context = ErrorContext(namespace=namespace, name=tag, operation='resolve_image')
        try:
            image_tag = self.client.get_image_tag(namespace, tag)
        except Exception as e:
            error = error_handler.handle_exception(e, context)
            raise ResolutionError(
                f"Could not resolve image {reference}: {error.message}",
                context=context,
                cause=error,
                suggestions=[
                    f'Check that the tag exists: oc get istag {tag} -n {namespace}',
                    'Verify you are allowed to read image streams in that project',
                ]
            ) from e

        locator = ((image_tag or {}).get('image') or {}).get('dockerImageReference')
        if not locator:
            raise ResolutionError(
                f"Image stream tag {namespace}/{tag} does not reference an image",
                context=context
            )

        logger.info(f"Resolved {reference} to {locator}")
        return locator

    @staticmethod
    def split_reference(reference: str):
        """Split ``namespace/name:tag`` into ``(namespace, 'name:tag')``.

        Raises:
            InvalidReferenceFormat: If the reference has the wrong shape
        """
        parts = reference.split('/')
        if len(parts) != 2:
            raise InvalidReferenceFormat(
                f"Must be namespace/image:tag, got only {reference}"
            )

        namespace, tag = parts
        name, _, tag_name = tag.partition(':')
        if not namespace or not name or not tag_name:
            raise InvalidReferenceFormat(
                f"Must be namespace/image:tag, got only {reference}"
            )

        return namespace, tag
