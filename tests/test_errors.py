"""
Tests for error classification.
"""

import json

import pytest
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException

from wave_rollout.utils.errors import (
    AccessDeniedError,
    ConflictError,
    CredentialError,
    ErrorCategory,
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    NetworkError,
    NotFoundError,
    RemoteError,
    UnsupportedTriggerError,
)


def api_exception(status, message=None, reason="Reason"):
    error = ApiException(status=status, reason=reason)
    if message is not None:
        error.body = json.dumps({"kind": "Status", "message": message})
    return error


class TestErrorHandler:
    """Test conversion of client errors into rollout errors."""

    @pytest.fixture
    def handler(self):
        return ErrorHandler()

    @pytest.mark.parametrize("status, expected", [
        (401, AccessDeniedError),
        (403, AccessDeniedError),
        (404, NotFoundError),
        (409, ConflictError),
        (429, NetworkError),
        (500, RemoteError),
        (503, NetworkError),
    ])
    def test_status_mapping(self, handler, status, expected):
        error = handler.handle_exception(api_exception(status, "details"))

        assert type(error) is expected
        assert error.context.status_code == status
        assert error.suggestions

    def test_status_message_is_extracted(self, handler):
        error = handler.handle_exception(
            api_exception(409, 'Operation cannot be fulfilled on deploymentconfigs "api"')
        )

        assert 'deploymentconfigs "api"' in error.message
        assert error.category == ErrorCategory.CONFLICT
        assert error.severity == ErrorSeverity.WARNING

    def test_reason_used_without_body(self, handler):
        error = handler.handle_exception(api_exception(404, reason="Not Found"))

        assert error.message.endswith("Not Found")

    def test_unmapped_status(self, handler):
        error = handler.handle_exception(api_exception(418, "teapot"))

        assert type(error) is RemoteError
        assert "418" in error.message

    def test_context_is_kept(self, handler):
        context = ErrorContext(target="team-a/api", operation="update")

        error = handler.handle_exception(api_exception(403, "forbidden"), context)

        assert error.context.target == "team-a/api"
        assert error.context.operation == "update"

    def test_rollout_errors_pass_through(self, handler):
        original = UnsupportedTriggerError("automatic trigger")

        assert handler.handle_exception(original) is original

    def test_connection_errors(self, handler):
        error = handler.handle_exception(ConnectionError("refused"))

        assert isinstance(error, NetworkError)
        assert isinstance(error.cause, ConnectionError)

    def test_config_exception(self, handler):
        error = handler.handle_exception(ConfigException("no current context"))

        assert isinstance(error, CredentialError)
        assert error.severity == ErrorSeverity.CRITICAL

    def test_unknown_errors(self, handler):
        error = handler.handle_exception(KeyError("spec"))

        assert isinstance(error, RemoteError)
        assert error.category == ErrorCategory.UNKNOWN


class TestRolloutError:
    """Test rendering of rollout errors."""

    def test_user_message(self):
        error = UnsupportedTriggerError(
            "Automatic image change trigger",
            context=ErrorContext(target="team-a/api", operation="update")
        )

        message = error.to_user_message()

        assert message.startswith("ERROR: Automatic image change trigger")
        assert "Target: team-a/api" in message
        assert "Suggested fixes:" in message

    def test_to_dict(self):
        cause = ValueError("bad")
        error = NotFoundError("missing", context=ErrorContext(namespace="team-a", name="api"), cause=cause)

        data = error.to_dict()

        assert data["type"] == "NotFoundError"
        assert data["category"] == "not_found"
        assert data["context"]["namespace"] == "team-a"
        assert data["cause"] == "bad"
