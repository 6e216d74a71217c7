"""Tests for the kr8s-backed Kubernetes reads."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import kr8s
import pytest

from validatorctl.errors import DeploymentError
from validatorctl.infra.k8s import Kr8sController, run_sync

CONTROLLER_MODULE = "validatorctl.infra.k8s.kr8s_controller"


class _AsyncIter:
    def __init__(self, items: list) -> None:
        self._items = iter(items)

    def __aiter__(self) -> _AsyncIter:
        return self

    async def __anext__(self):
        try:
            return next(self._items)
        except StopIteration:
            raise StopAsyncIteration from None


@pytest.fixture
def controller() -> Kr8sController:
    controller = Kr8sController("/kc")
    controller._get_api = AsyncMock(return_value=MagicMock())  # type: ignore[method-assign]
    return controller


class TestNamespaceExists:
    def test_present(self, controller: Kr8sController) -> None:
        with patch(f"{CONTROLLER_MODULE}.Namespace.get", new=AsyncMock()):
            assert run_sync(controller.namespace_exists("validator")) is True

    def test_not_found(self, controller: Kr8sController) -> None:
        with patch(
            f"{CONTROLLER_MODULE}.Namespace.get",
            new=AsyncMock(side_effect=kr8s.NotFoundError("validator")),
        ):
            assert run_sync(controller.namespace_exists("validator")) is False

    def test_connection_failure_raises_deployment_error(
        self, controller: Kr8sController
    ) -> None:
        """A refused connection is not mistaken for an absent namespace."""
        with patch(
            f"{CONTROLLER_MODULE}.Namespace.get",
            new=AsyncMock(side_effect=ConnectionRefusedError("refused")),
        ):
            with pytest.raises(DeploymentError) as excinfo:
                run_sync(controller.namespace_exists("validator"))

        assert excinfo.value.message == "Failed to check namespace validator"
        assert excinfo.value.details == "refused"

    def test_server_error_raises_deployment_error(
        self, controller: Kr8sController
    ) -> None:
        with patch(
            f"{CONTROLLER_MODULE}.Namespace.get",
            new=AsyncMock(side_effect=kr8s.ServerError("Unauthorized")),
        ):
            with pytest.raises(DeploymentError, match="Unauthorized"):
                run_sync(controller.namespace_exists("validator"))


class TestListValidationResults:
    def test_parses_raw_objects(self, controller: Kr8sController) -> None:
        raw = MagicMock()
        raw.raw = {
            "metadata": {"name": "validator-plugin-oci-rules", "namespace": "validator"},
            "spec": {"plugin": "OCI"},
            "status": {"state": "Succeeded"},
        }

        with patch(
            f"{CONTROLLER_MODULE}.ValidationResult.list",
            return_value=_AsyncIter([raw]),
        ) as mock_list:
            results = run_sync(controller.list_validation_results())

        assert [r.name for r in results] == ["validator-plugin-oci-rules"]
        assert mock_list.call_args.kwargs["namespace"] == "validator"


def test_kubeconfig_is_stringified() -> None:
    from pathlib import Path

    assert Kr8sController(Path("/kc")).kubeconfig == "/kc"
    assert Kr8sController().kubeconfig is None


class TestListValidationResultsErrors:
    def test_missing_crd_raises_deployment_error(self, controller: Kr8sController) -> None:
        """Listing before the validator CRDs exist fails with a clean error."""
        with patch(
            f"{CONTROLLER_MODULE}.ValidationResult.list",
            side_effect=kr8s.ServerError("the server could not find the requested resource"),
        ):
            with pytest.raises(DeploymentError) as excinfo:
                run_sync(controller.list_validation_results())

        assert excinfo.value.message == "Failed to list validation results"

    def test_api_timeout_raises_deployment_error(self, controller: Kr8sController) -> None:
        controller._get_api = AsyncMock(  # type: ignore[method-assign]
            side_effect=kr8s.APITimeoutError("timed out")
        )

        with pytest.raises(DeploymentError, match="timed out"):
            run_sync(controller.list_validation_results())


class TestRunSync:
    def test_runs_without_event_loop(self) -> None:
        async def _answer() -> int:
            return 42

        assert run_sync(_answer()) == 42

    def test_runs_inside_running_loop(self) -> None:
        """Nested use from async code runs the coroutine on a worker thread."""

        async def _answer() -> int:
            return 42

        async def _outer() -> int:
            return run_sync(_answer())

        assert asyncio.run(_outer()) == 42
