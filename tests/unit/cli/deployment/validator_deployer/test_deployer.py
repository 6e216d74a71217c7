"""Tests for the deployment orchestrator."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import yaml

from validatorctl.cli.deployment.shell_commands import ShellCommands
from validatorctl.cli.deployment.shell_commands.types import CommandResult
from validatorctl.cli.deployment.validator_deployer import (
    DeploymentState,
    ValidatorDeployer,
)
from validatorctl.config.models import DeploymentSpec
from validatorctl.config.workspace import Workspace
from validatorctl.errors import (
    ConfigurationError,
    DeploymentError,
    OrchestrationAborted,
)


@pytest.fixture
def deployer(
    commands: ShellCommands, mock_console: MagicMock, workspace: Workspace
) -> ValidatorDeployer:
    return ValidatorDeployer(commands, mock_console, workspace, sleep=MagicMock())


class TestValidate:
    """Configuration errors are raised before any side effect."""

    def test_zero_enabled_plugins_rejected(
        self,
        deployer: ValidatorDeployer,
        make_spec: Callable[..., DeploymentSpec],
        mock_runner: MagicMock,
        fake_controller: Any,
    ) -> None:
        spec = make_spec(ociPlugin={"enabled": False})

        with pytest.raises(ConfigurationError):
            deployer.deploy(spec)

        mock_runner.run.assert_not_called()
        mock_runner.run_streaming.assert_not_called()
        assert fake_controller.namespace_checks == []
        assert deployer.state == DeploymentState.IDLE

    def test_missing_kubeconfig_rejected(
        self,
        deployer: ValidatorDeployer,
        make_spec: Callable[..., DeploymentSpec],
        mock_runner: MagicMock,
    ) -> None:
        with pytest.raises(ConfigurationError):
            deployer.deploy(make_spec(kubeconfig=""))

        mock_runner.run.assert_not_called()


class TestDeploy:
    """Tests for the install/upgrade sequence."""

    def test_oci_only_end_to_end(
        self,
        deployer: ValidatorDeployer,
        oci_spec: DeploymentSpec,
        mock_runner: MagicMock,
        fake_controller: Any,
        workspace: Workspace,
        run_commands: Callable[[MagicMock], list[list[str]]],
    ) -> None:
        """Release, controller wait, plugin wait and one apply, in that order."""
        deployer.deploy(oci_spec)

        # No OCI secret is configured, so the namespace precheck is skipped
        assert fake_controller.namespace_checks == []

        cmds = run_commands(mock_runner)
        assert [c[:2] for c in cmds] == [
            ["helm", "upgrade"],
            ["kubectl", "wait"],
            ["kubectl", "wait"],
            ["kubectl", "apply"],
        ]
        helm, controller_wait, plugin_wait, apply = cmds

        values = yaml.safe_load(Path(helm[helm.index("-f") + 1]).read_text())
        assert [p["chart"]["name"] for p in values["plugins"]] == ["validator-plugin-oci"]
        assert "deployment/validator-controller-manager" in controller_wait
        assert "deployment/validator-plugin-oci-controller-manager" in plugin_wait

        manifest_path = workspace.manifest_path("validator-plugin-oci")
        assert apply[3] == str(manifest_path)
        manifest = yaml.safe_load(manifest_path.read_text())
        refs = [
            a["ref"] for a in manifest["spec"]["ociRegistryRules"][0]["artifacts"]
        ]
        assert refs == [
            "u5n5j0b4/oci-test-public:latest",
            "u5n5j0b4/oci-test-public@sha256:3b7ef9b5c5f3d2a2d0d2d4b2",
        ]
        assert deployer.state == DeploymentState.RULES_APPLIED

    def test_oci_chart_pulled_without_v(
        self,
        deployer: ValidatorDeployer,
        make_spec: Callable[..., DeploymentSpec],
        mock_runner: MagicMock,
        run_commands: Callable[[MagicMock], list[list[str]]],
    ) -> None:
        spec = make_spec(
            helmRelease={
                "chart": {
                    "name": "validator",
                    "repository": "oci://registry.example/charts",
                    "version": "v1.2.3",
                }
            }
        )

        deployer.deploy(spec)

        pull = run_commands(mock_runner)[0]
        assert pull[:3] == ["helm", "pull", "oci://registry.example/charts/validator"]
        assert pull[pull.index("--version") + 1] == "1.2.3"

    def test_without_rules_stops_at_plugins_ready(
        self,
        deployer: ValidatorDeployer,
        oci_spec: DeploymentSpec,
        run_commands: Callable[[MagicMock], list[list[str]]],
        mock_runner: MagicMock,
    ) -> None:
        deployer.deploy(oci_spec, apply_rules=False)

        assert ["kubectl", "apply"] not in [c[:2] for c in run_commands(mock_runner)]
        assert deployer.state == DeploymentState.PLUGINS_READY

    def test_failure_aborts_and_leaves_release(
        self,
        deployer: ValidatorDeployer,
        oci_spec: DeploymentSpec,
        mock_runner: MagicMock,
        run_commands: Callable[[MagicMock], list[list[str]]],
    ) -> None:
        """A failed rule apply reports the step and the last state reached."""

        def _run(cmd: list[str], **kwargs: Any) -> CommandResult:
            if cmd[:2] == ["kubectl", "apply"]:
                return CommandResult(success=False, stderr="forbidden\n", returncode=1)
            return CommandResult(success=True)

        mock_runner.run.side_effect = _run

        with pytest.raises(OrchestrationAborted) as excinfo:
            deployer.deploy(oci_spec)

        error = excinfo.value
        assert error.step == "Apply plugin rules"
        assert error.last_state == "PluginsReady"
        assert "forbidden" in error.details
        assert deployer.state == DeploymentState.ABORTED
        assert not any(c[:2] == ["helm", "uninstall"] for c in run_commands(mock_runner))

    def test_cluster_read_failure_aborts(
        self,
        deployer: ValidatorDeployer,
        make_spec: Callable[..., DeploymentSpec],
        mock_runner: MagicMock,
        fake_controller: Any,
    ) -> None:
        """An unreachable API server during the namespace check aborts the run."""
        fake_controller.error = DeploymentError(
            "Failed to check namespace validator", details="Unauthorized"
        )
        spec = make_spec(
            helmReleaseSecret={
                "name": "validator-chart",
                "basicAuth": {"username": "u", "password": "p"},
            }
        )

        with pytest.raises(OrchestrationAborted) as excinfo:
            deployer.deploy(spec)

        assert excinfo.value.step == "Provision secrets"
        assert excinfo.value.last_state == "Idle"
        assert "Unauthorized" in str(excinfo.value)
        assert deployer.state == DeploymentState.ABORTED
        mock_runner.run.assert_not_called()


class TestApplyRules:
    def test_rejects_plugins_without_rules(
        self,
        deployer: ValidatorDeployer,
        make_spec: Callable[..., DeploymentSpec],
        mock_runner: MagicMock,
    ) -> None:
        spec = make_spec(ociPlugin={"enabled": True})

        with pytest.raises(ConfigurationError) as excinfo:
            deployer.apply_rules(spec)

        assert "validator-plugin-oci" in excinfo.value.details
        mock_runner.run.assert_not_called()

    def test_waits_then_applies(
        self,
        deployer: ValidatorDeployer,
        oci_spec: DeploymentSpec,
        mock_runner: MagicMock,
        run_commands: Callable[[MagicMock], list[list[str]]],
    ) -> None:
        deployer.apply_rules(oci_spec)

        assert [c[:2] for c in run_commands(mock_runner)] == [
            ["kubectl", "wait"],
            ["kubectl", "apply"],
        ]
        assert deployer.state == DeploymentState.RULES_APPLIED


class TestTeardown:
    """Tests for uninstall."""

    def test_uninstalls_release_and_deletes_kind_cluster(
        self,
        deployer: ValidatorDeployer,
        make_spec: Callable[..., DeploymentSpec],
        mock_runner: MagicMock,
        run_commands: Callable[[MagicMock], list[list[str]]],
    ) -> None:
        spec = make_spec(kindConfig={"useKindCluster": True})

        deployer.teardown(spec)

        assert run_commands(mock_runner) == [
            [
                "helm",
                "uninstall",
                "validator",
                "-n",
                "validator",
                "--wait",
                "--kubeconfig",
                spec.kubeconfig,
            ],
            ["kind", "delete", "cluster", "--name", "validator-kind-cluster"],
        ]

    def test_keeps_cluster_when_requested(
        self,
        deployer: ValidatorDeployer,
        make_spec: Callable[..., DeploymentSpec],
        mock_runner: MagicMock,
        run_commands: Callable[[MagicMock], list[list[str]]],
    ) -> None:
        spec = make_spec(kindConfig={"useKindCluster": True})

        deployer.teardown(spec, delete_cluster=False)

        assert [c[0] for c in run_commands(mock_runner)] == ["helm"]

    def test_provision_kind_cluster_checks_binaries(
        self,
        deployer: ValidatorDeployer,
        make_spec: Callable[..., DeploymentSpec],
        mock_runner: MagicMock,
    ) -> None:
        deployer.provision_kind_cluster(make_spec(kindConfig={"useKindCluster": True}))

        mock_runner.missing_binaries.assert_called_once_with(("docker", "kind"))
        mock_runner.run_streaming.assert_called_once()
