"""Utility modules for logging, retries and error handling."""

from wave_rollout.utils.retry import RetryPolicy
from wave_rollout.utils.errors import (
    ErrorCategory,
    ErrorSeverity,
    ErrorContext,
    RolloutError,
    ConfigurationError,
    CredentialError,
    InvalidReferenceFormat,
    ResolutionError,
    RemoteError,
    NotFoundError,
    AccessDeniedError,
    NetworkError,
    ConflictError,
    UnsupportedTriggerError,
    ReadinessTimeoutError,
    ErrorHandler,
    error_handler
)
from wave_rollout.utils.logging import get_logger, setup_logging

__all__ = [
    # Retry
    'RetryPolicy',

    # Errors
    'ErrorCategory',
    'ErrorSeverity',
    'ErrorContext',
    'RolloutError',
    'ConfigurationError',
    'CredentialError',
    'InvalidReferenceFormat',
    'ResolutionError',
    'RemoteError',
    'NotFoundError',
    'AccessDeniedError',
    'NetworkError',
    'ConflictError',
    'UnsupportedTriggerError',
    'ReadinessTimeoutError',
    'ErrorHandler',
    'error_handler',

    # Logging
    'get_logger',
    'setup_logging',
]
