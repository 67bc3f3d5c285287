"""Pydantic models for configuration schema."""

import os
import re
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from wave_rollout.orchestrator.models import RolloutRequest
from wave_rollout.orchestrator.readiness import DEFAULT_POLL_INTERVAL, DEFAULT_TIMEOUT
from wave_rollout.utils.retry import RetryPolicy


def default_kubeconfig() -> Optional[str]:
    """Return ~/.kube/config when a home directory is known."""
    home = os.path.expanduser("~")
    if home and home != "~":
        return os.path.join(home, ".kube", "config")
    return None


class RetryConfig(BaseModel):
    """Conflict retry configuration."""

    max_attempts: int = Field(10, ge=1, le=100)
    base_delay: float = Field(0.01, ge=0)
    max_delay: float = Field(1.0, ge=0)
    exponential_base: float = Field(2.0, ge=1)
    jitter: bool = True

    @model_validator(mode="after")
    def validate_delays(self):
        """Validate the delay cap is not below the first delay."""
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be greater than or equal to base_delay")
        return self

    def to_policy(self) -> RetryPolicy:
        """Build the retry policy described by this configuration."""
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            exponential_base=self.exponential_base,
            jitter=self.jitter
        )


class ReadinessConfig(BaseModel):
    """Readiness wait configuration."""

    interval: float = Field(DEFAULT_POLL_INTERVAL, gt=0, description="Seconds between status polls")
    timeout: float = Field(DEFAULT_TIMEOUT, gt=0, description="Seconds before a target times out")

    @model_validator(mode="after")
    def validate_timing(self):
        """Validate the timeout allows at least one poll."""
        if self.timeout < self.interval:
            raise ValueError("timeout must be greater than or equal to interval")
        return self


class RolloutConfig(BaseModel):
    """Complete configuration of a rollout run."""

    projects: str = Field(..., min_length=1, description="Regex filter for projects")
    deployment: str = Field(..., min_length=1, description="Name of deployment configs")
    new_image: str = Field(..., min_length=1, description="New image sha or tag")
    current_image: Optional[str] = Field(None, description="Current image sha or tag")
    batch_size: int = Field(10, ge=1, description="Number of simultaneous rollouts")
    container: Optional[str] = Field(None, description="Container to update, defaults to the first")
    host: Optional[str] = None
    token: Optional[str] = None
    kubeconfig: Optional[str] = Field(default_factory=default_kubeconfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    readiness: ReadinessConfig = Field(default_factory=ReadinessConfig)

    @field_validator("projects")
    @classmethod
    def validate_projects(cls, v: str) -> str:
        """Validate the project filter is a regular expression."""
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"not a valid regex expression: {e}")
        return v

    @field_validator("deployment")
    @classmethod
    def validate_deployment(cls, v: str) -> str:
        """Validate the deployment name is a DNS-1123 subdomain."""
        if not re.match(r"^[a-z0-9]([-a-z0-9.]*[a-z0-9])?$", v) or len(v) > 253:
            raise ValueError(f"Deployment name must be a valid resource name: {v}")
        return v

    @field_validator("current_image", "container", "host", "token", "kubeconfig")
    @classmethod
    def empty_as_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty strings from flags and environment as unset."""
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def validate_credentials(self):
        """Validate host and token are given together."""
        if bool(self.host) != bool(self.token):
            raise ValueError("host and token must be provided together")
        return self

    def to_request(self) -> RolloutRequest:
        """Build the rollout request described by this configuration."""
        return RolloutRequest(
            namespace_pattern=self.projects,
            name=self.deployment,
            new_image=self.new_image,
            current_image=self.current_image,
            batch_concurrency=self.batch_size,
            container=self.container
        )
