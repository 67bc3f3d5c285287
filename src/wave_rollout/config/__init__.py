"""Configuration management for the rollout tool."""

from .models import (
    RetryConfig,
    ReadinessConfig,
    RolloutConfig,
)
from .parser import Config, ConfigValidationError

__all__ = [
    "RetryConfig",
    "ReadinessConfig",
    "RolloutConfig",
    "Config",
    "ConfigValidationError",
]
