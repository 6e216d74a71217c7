"""Tests for OCI chart resolution."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from validatorctl.cli.deployment.shell_commands import ShellCommands
from validatorctl.cli.deployment.shell_commands.types import (
    CommandResult,
    ReleaseOptions,
)
from validatorctl.cli.deployment.validator_deployer.chart_resolver import (
    ChartResolver,
    normalize_oci_version,
)
from validatorctl.errors import CommandFailedError

OCI_OPTIONS = ReleaseOptions(
    release_name="validator",
    namespace="validator",
    chart="validator",
    repo="oci://registry.example/charts",
    version="v1.2.3",
)


def _fake_pull(cmd: list[str], **kwargs: Any) -> CommandResult:
    """Simulate `helm pull --untar` by creating the chart directory."""
    destination = Path(cmd[cmd.index("--untardir") + 1])
    chart_dir = destination / "validator"
    chart_dir.mkdir(parents=True)
    (chart_dir / "Chart.yaml").write_text("name: validator\n")
    return CommandResult(success=True)


class TestNormalizeOciVersion:
    def test_strips_leading_v(self) -> None:
        assert normalize_oci_version("v1.2.3") == "1.2.3"

    def test_bare_version_unchanged(self) -> None:
        assert normalize_oci_version("1.2.3") == "1.2.3"


class TestChartResolver:
    """Tests for ChartResolver.resolve."""

    @pytest.fixture
    def resolver(
        self, commands: ShellCommands, mock_console: MagicMock, tmp_path: Path
    ) -> ChartResolver:
        return ChartResolver(commands, mock_console, tmp_path)

    def test_classic_repository_passes_through(
        self, resolver: ChartResolver, mock_runner: MagicMock
    ) -> None:
        options = ReleaseOptions(
            "validator", "validator", "validator", repo="https://charts.example"
        )

        with resolver.resolve(options) as resolved:
            assert resolved is options

        mock_runner.run.assert_not_called()

    def test_pull_uses_version_without_v(
        self, resolver: ChartResolver, mock_runner: MagicMock
    ) -> None:
        """OCI registries receive a bare semver tag."""
        mock_runner.run.side_effect = _fake_pull

        with resolver.resolve(OCI_OPTIONS) as resolved:
            assert resolved.version == "1.2.3"

        cmd = mock_runner.run.call_args[0][0]
        assert cmd[:3] == ["helm", "pull", "oci://registry.example/charts/validator"]
        assert cmd[cmd.index("--version") + 1] == "1.2.3"

    def test_local_chart_exists_during_block_and_removed_after(
        self, resolver: ChartResolver, mock_runner: MagicMock, tmp_path: Path
    ) -> None:
        mock_runner.run.side_effect = _fake_pull

        with resolver.resolve(OCI_OPTIONS) as resolved:
            assert resolved.local_path == tmp_path / "chart" / "validator"
            assert resolved.local_path.is_dir()

        assert not (tmp_path / "chart").exists()

    def test_local_chart_removed_when_install_fails(
        self, resolver: ChartResolver, mock_runner: MagicMock, tmp_path: Path
    ) -> None:
        """The extracted chart is removed on the error path too."""
        mock_runner.run.side_effect = _fake_pull

        with pytest.raises(RuntimeError):
            with resolver.resolve(OCI_OPTIONS):
                raise RuntimeError("helm upgrade failed")

        assert not (tmp_path / "chart").exists()

    def test_pull_failure_is_fatal(
        self, resolver: ChartResolver, mock_runner: MagicMock
    ) -> None:
        mock_runner.run.return_value = CommandResult(
            success=False, stderr="Error: unauthorized\n", returncode=1
        )

        with pytest.raises(CommandFailedError) as excinfo:
            with resolver.resolve(OCI_OPTIONS):
                pytest.fail("block must not run after a failed pull")

        assert excinfo.value.message == "Failed to pull Helm chart from OCI registry"
        assert excinfo.value.details == "Error: unauthorized"

    def test_cleanup_failure_only_warns(
        self,
        resolver: ChartResolver,
        mock_runner: MagicMock,
        mock_console: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A chart directory that cannot be removed is not an error."""
        mock_runner.run.side_effect = _fake_pull

        def _fail(path: Path) -> None:
            raise OSError("device busy")

        monkeypatch.setattr(
            "validatorctl.cli.deployment.validator_deployer.chart_resolver.shutil.rmtree",
            _fail,
        )

        with resolver.resolve(OCI_OPTIONS):
            pass

        mock_console.warn.assert_called_once()
