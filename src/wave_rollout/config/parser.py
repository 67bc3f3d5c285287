"""YAML configuration parser for the rollout tool."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from .models import RolloutConfig


class ConfigValidationError(Exception):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, errors: Optional[List[Dict]] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(self.message)

    def __str__(self) -> str:
        """Format validation errors for display."""
        if not self.errors:
            return self.message

        error_lines = [self.message, ""]
        for error in self.errors:
            location = " -> ".join(str(loc) for loc in error.get("loc", []))
            msg = error.get("msg", "Unknown error")
            error_lines.append(f"  • {location}: {msg}")

        return "\n".join(error_lines)


class Config:
    """Merges the optional config file with command line and environment values."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to a YAML configuration file, if any
        """
        self.config_path = Path(config_path) if config_path else None
        self.data: Dict[str, Any] = {}

    def load(self, overrides: Optional[Dict[str, Any]] = None) -> RolloutConfig:
        """Load and validate configuration.

        Values in ``overrides`` that are not None win over the file.

        Args:
            overrides: Values from command line flags and environment

        Returns:
            Validated RolloutConfig

        Raises:
            ConfigValidationError: If the file or the merged values are invalid
            FileNotFoundError: If the configuration file doesn't exist
        """
        self.data = self._read_file() if self.config_path else {}

        for key, value in (overrides or {}).items():
            if value is not None:
                self.data[key] = value

        try:
            return RolloutConfig(**self.data)
        except ValidationError as e:
            errors = [
                {"loc": list(error["loc"]), "msg": error["msg"]}
                for error in e.errors()
            ]
            raise ConfigValidationError(
                f"Configuration validation failed with {len(errors)} error(s)",
                errors,
            )

    def _read_file(self) -> Dict[str, Any]:
        """Read the YAML file, accepting flag-style keys such as ``batch-size``."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, "r") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Failed to parse YAML: {e}")

        if not isinstance(raw, dict):
            raise ConfigValidationError(
                "Configuration file must contain a mapping",
                [{"loc": ["<root>"], "msg": f"expected a mapping, got {type(raw).__name__}"}],
            )

        return {str(key).replace("-", "_"): value for key, value in raw.items()}
