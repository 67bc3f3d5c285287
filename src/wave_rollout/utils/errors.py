"""Error handling framework for rollout operations."""

import json
from typing import Optional, Dict, Any, List
from enum import Enum
from dataclasses import dataclass
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import HTTPError as URLLib3HTTPError


class ErrorCategory(Enum):
    """Categories of errors that can occur during a rollout."""
    CONFIGURATION = "configuration"
    REFERENCE = "reference"
    RESOLUTION = "resolution"
    CONFLICT = "conflict"
    TRIGGER = "trigger"
    REMOTE = "remote"
    NOT_FOUND = "not_found"
    PERMISSION = "permission"
    CREDENTIAL = "credential"
    NETWORK = "network"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    CRITICAL = "critical"  # Rollout cannot start
    ERROR = "error"  # Target failed but rollout can continue
    WARNING = "warning"  # Transient, handled locally
    INFO = "info"  # Informational message


@dataclass
class ErrorContext:
    """Context information for an error."""
    target: Optional[str] = None
    namespace: Optional[str] = None
    name: Optional[str] = None
    operation: Optional[str] = None
    status_code: Optional[int] = None
    additional_info: Optional[Dict[str, Any]] = None


class RolloutError(Exception):
    """Base exception for rollout errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None
    ):
        """Initialize rollout error.

        Args:
            message: Human-readable error message
            category: Error category
            severity: Error severity
            context: Additional context about the error
            cause: Original exception that caused this error
            suggestions: List of suggested fixes
        """
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.cause = cause
        self.suggestions = suggestions or []

    def to_user_message(self) -> str:
        """Convert error to user-friendly message.

        Returns:
            Formatted error message for display to user
        """
        lines = []

        lines.append(f"{self.severity.value.upper()}: {self.message}")

        if self.context.target:
            lines.append(f"   Target: {self.context.target}")
        if self.context.operation:
            lines.append(f"   Operation: {self.context.operation}")

        if self.cause:
            lines.append(f"   Cause: {str(self.cause)}")

        if self.suggestions:
            lines.append("\nSuggested fixes:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"   {i}. {suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error
        """
        return {
            'type': type(self).__name__,
            'message': self.message,
            'category': self.category.value,
            'severity': self.severity.value,
            'context': {
                'target': self.context.target,
                'namespace': self.context.namespace,
                'name': self.context.name,
                'operation': self.context.operation,
                'status_code': self.context.status_code,
                'additional_info': self.context.additional_info
            },
            'cause': str(self.cause) if self.cause else None,
            'suggestions': self.suggestions
        }


class ConfigurationError(RolloutError):
    """Error in configuration file, flags or request parameters."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class CredentialError(RolloutError):
    """No usable kubeconfig or host/token pair."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CREDENTIAL,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class InvalidReferenceFormat(RolloutError):
    """Image reference is neither a digest nor namespace/name:tag."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.REFERENCE,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class ResolutionError(RolloutError):
    """Image tag lookup failed."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.RESOLUTION,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class RemoteError(RolloutError):
    """Cluster API call failed."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.REMOTE, **kwargs):
        kwargs.setdefault('severity', ErrorSeverity.ERROR)
        super().__init__(message, category=category, **kwargs)


class NotFoundError(RemoteError):
    """Requested resource does not exist."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.NOT_FOUND, **kwargs)


class AccessDeniedError(RemoteError):
    """Caller is not authenticated or not allowed to perform the call."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.PERMISSION, **kwargs)


class NetworkError(RemoteError):
    """Cluster API could not be reached."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.NETWORK, **kwargs)


class ConflictError(RolloutError):
    """Resource version changed between read and write."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CONFLICT,
            severity=ErrorSeverity.WARNING,
            **kwargs
        )


class UnsupportedTriggerError(RolloutError):
    """Target has an automatic image change trigger."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('suggestions', [
            'Disable the automatic image change trigger on the deployment config',
            'Or roll the image out by updating the image stream tag instead',
        ])
        super().__init__(
            message,
            category=ErrorCategory.TRIGGER,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class ReadinessTimeoutError(RolloutError):
    """Target did not report ready replicas of a new version in time."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.TIMEOUT,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class ErrorHandler:
    """Converts cluster client and transport errors into rollout errors."""

    # Mapping of HTTP status codes to error classes and suggestions
    STATUS_ERROR_MAPPING = {
        401: {
            'error': AccessDeniedError,
            'message': 'Unauthorized - token is invalid or expired',
            'suggestions': [
                'Log in again with: oc login',
                'Pass a fresh token with --token or WAVE_TOKEN',
            ]
        },
        403: {
            'error': AccessDeniedError,
            'message': 'Access denied - insufficient permissions',
            'suggestions': [
                'Check the role bindings of your user or service account',
                'Verify you can run: oc auth can-i update deploymentconfigs',
            ]
        },
        404: {
            'error': NotFoundError,
            'message': 'Resource not found',
            'suggestions': [
                'Verify the namespace and resource name are correct',
            ]
        },
        409: {
            'error': ConflictError,
            'message': 'Resource was modified concurrently',
            'suggestions': [
                'Retry the operation (automatic retry enabled)',
            ]
        },
        422: {
            'error': RemoteError,
            'message': 'Invalid resource',
            'suggestions': [
                'Review the error message for the rejected field',
            ]
        },
        429: {
            'error': NetworkError,
            'message': 'API rate limit exceeded',
            'suggestions': [
                'Reduce --batch-size to lower the request rate',
            ]
        },
        500: {
            'error': RemoteError,
            'message': 'Internal API server error',
            'suggestions': [
                'Check the health of the cluster control plane',
            ]
        },
        503: {
            'error': NetworkError,
            'message': 'API server temporarily unavailable',
            'suggestions': [
                'Wait a few moments and retry',
            ]
        },
    }

    def handle_exception(
        self,
        error: Exception,
        context: Optional[ErrorContext] = None
    ) -> RolloutError:
        """Handle an exception and convert to RolloutError.

        Args:
            error: The exception to handle
            context: Additional context about where the error occurred

        Returns:
            RolloutError with categorization and suggestions
        """
        context = context or ErrorContext()

        # Already-wrapped errors pass through
        if isinstance(error, RolloutError):
            return error

        if isinstance(error, ApiException):
            return self._handle_api_error(error, context)

        if isinstance(error, ConfigException):
            return CredentialError(
                message=f'Invalid cluster configuration: {str(error)}',
                context=context,
                cause=error,
                suggestions=[
                    'Check the file passed with --kubeconfig',
                    'Or pass --host and --token explicitly',
                ]
            )

        if isinstance(error, (ConnectionError, TimeoutError, URLLib3HTTPError)):
            return NetworkError(
                message=f'Network error: {str(error)}',
                context=context,
                cause=error,
                suggestions=[
                    'Check your connection to the cluster API server',
                    'Verify the --host URL is correct',
                ]
            )

        return RemoteError(
            message=str(error),
            category=ErrorCategory.UNKNOWN,
            context=context,
            cause=error,
            suggestions=['Check logs for more details']
        )

    def _handle_api_error(
        self,
        error: ApiException,
        context: ErrorContext
    ) -> RolloutError:
        """Handle a kubernetes ApiException.

        Args:
            error: The ApiException
            context: Error context

        Returns:
            Categorized RolloutError
        """
        status = error.status or 0
        context.status_code = status
        detail = self._extract_message(error)

        error_info = self.STATUS_ERROR_MAPPING.get(status)
        if error_info:
            return error_info['error'](
                message=f"{error_info['message']}: {detail}",
                context=context,
                cause=error,
                suggestions=list(error_info['suggestions'])
            )

        return RemoteError(
            message=f"API error ({status}): {detail}",
            context=context,
            cause=error,
            suggestions=['Check the cluster API server logs for more details']
        )

    @staticmethod
    def _extract_message(error: ApiException) -> str:
        """Pull the Status message out of an ApiException body."""
        if error.body:
            try:
                body = json.loads(error.body)
            except (TypeError, ValueError):
                return str(error.body)
            if isinstance(body, dict) and body.get('message'):
                return body['message']
        return error.reason or 'unknown error'


# Global error handler instance
error_handler = ErrorHandler()
