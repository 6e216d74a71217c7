"""Tests for the deployment error hierarchy."""

import pytest

from validatorctl.errors import (
    CommandFailedError,
    ConfigurationError,
    DeploymentError,
    OrchestrationAborted,
    is_already_exists,
)
from validatorctl.infra.k8s import CommandResult


class TestIsAlreadyExists:
    @pytest.mark.parametrize(
        "stderr",
        [
            'Error from server (AlreadyExists): secrets "creds" already exists',
            'Error from server (AlreadyExists): namespaces "validator" already exists\n',
            "  already exists  ",
        ],
    )
    def test_matches_suffix(self, stderr: str) -> None:
        assert is_already_exists(stderr)

    @pytest.mark.parametrize(
        "stderr",
        [
            "",
            "Already Exists",
            'secret "creds" already exists; retrying',
            "error: Unauthorized",
        ],
    )
    def test_rejects_other_errors(self, stderr: str) -> None:
        assert not is_already_exists(stderr)


class TestErrors:
    def test_command_failed_uses_stderr_as_details(self) -> None:
        result = CommandResult(success=False, stderr="  boom \n", returncode=2)

        error = CommandFailedError("helm failed", result)

        assert error.details == "boom"
        assert error.result is result
        assert str(error) == "helm failed: boom"

    def test_configuration_error_is_deployment_error(self) -> None:
        assert issubclass(ConfigurationError, DeploymentError)

    def test_orchestration_aborted_reports_progress(self) -> None:
        cause = CommandFailedError(
            "Failed to apply validator-plugin-oci validator",
            CommandResult(success=False, stderr="forbidden"),
        )

        error = OrchestrationAborted("Apply plugin rules", "PluginsReady", cause)

        assert error.message == (
            "Apply plugin rules failed: Failed to apply validator-plugin-oci validator"
        )
        assert error.details.startswith("forbidden\n\nCompleted up to: PluginsReady")
        assert error.cause is cause
