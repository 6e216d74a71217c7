"""Shared fixtures for validatorctl tests."""

from __future__ import annotations

import copy
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from validatorctl.cli.deployment.shell_commands import ShellCommands
from validatorctl.config.models import DeploymentSpec
from validatorctl.config.workspace import Workspace
from validatorctl.infra.k8s import CommandResult, ValidationResultInfo

KUBECONFIG = "/tmp/validator/kubeconfig"

OCI_ARTIFACTS = [
    {"ref": "u5n5j0b4/oci-test-public:latest"},
    {"ref": "u5n5j0b4/oci-test-public@sha256:3b7ef9b5c5f3d2a2d0d2d4b2"},
]

OCI_ONLY_CONFIG: dict[str, Any] = {
    "kubeconfig": KUBECONFIG,
    "helmRelease": {
        "chart": {
            "name": "validator",
            "repository": "https://validator-labs.github.io/validator",
            "version": "v0.0.49",
        }
    },
    "ociPlugin": {
        "enabled": True,
        "helmRelease": {
            "chart": {
                "name": "validator-plugin-oci",
                "repository": "https://validator-labs.github.io/validator-plugin-oci",
                "version": "v0.0.11",
            }
        },
        "validator": {
            "ociRegistryRules": [
                {
                    "name": "public ecr registry",
                    "host": "public.ecr.aws",
                    "artifacts": OCI_ARTIFACTS,
                }
            ]
        },
    },
}


class FakeController:
    """Stand-in for Kr8sController with canned responses."""

    def __init__(
        self,
        namespace_present: bool = True,
        results: list[ValidationResultInfo] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.namespace_present = namespace_present
        self.error = error
        self.results = results or []
        self.namespace_checks: list[str] = []

    async def namespace_exists(self, namespace: str) -> bool:
        self.namespace_checks.append(namespace)
        if self.error is not None:
            raise self.error
        return self.namespace_present

    async def list_validation_results(
        self, namespace: str | None = None
    ) -> list[ValidationResultInfo]:
        if self.error is not None:
            raise self.error
        return list(self.results)


@pytest.fixture
def mock_runner() -> MagicMock:
    """Command runner whose commands all succeed."""
    runner = MagicMock()
    runner.run.return_value = CommandResult(success=True, stdout="", stderr="")
    runner.run_streaming.return_value = CommandResult(success=True)
    runner.missing_binaries.return_value = []
    return runner


@pytest.fixture
def fake_controller() -> FakeController:
    return FakeController()


@pytest.fixture
def commands(
    tmp_path: Path, mock_runner: MagicMock, fake_controller: FakeController
) -> ShellCommands:
    """ShellCommands wired to the mock runner and fake controller."""
    return ShellCommands(
        tmp_path,
        runner=mock_runner,
        controller_factory=lambda kubeconfig: fake_controller,
    )


@pytest.fixture
def mock_console() -> MagicMock:
    return MagicMock()


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    return Workspace.create(tmp_path / "workspace")


@pytest.fixture
def make_spec() -> Callable[..., DeploymentSpec]:
    """Build a DeploymentSpec from the OCI-only config plus overrides.

    Top-level keys in ``overrides`` replace those of the base config.
    """

    def _make(base: dict[str, Any] | None = None, **overrides: Any) -> DeploymentSpec:
        data = copy.deepcopy(OCI_ONLY_CONFIG if base is None else base)
        data.update(overrides)
        return DeploymentSpec.model_validate(data)

    return _make


@pytest.fixture
def oci_spec(make_spec: Callable[..., DeploymentSpec]) -> DeploymentSpec:
    return make_spec()


def commands_run(mock_runner: MagicMock) -> list[list[str]]:
    """Every command passed to runner.run, in call order."""
    return [list(c.args[0]) for c in mock_runner.run.call_args_list]


@pytest.fixture
def run_commands() -> Callable[[MagicMock], list[list[str]]]:
    return commands_run
