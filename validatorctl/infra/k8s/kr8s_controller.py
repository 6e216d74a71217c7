"""Kr8s-based Kubernetes reads.

Uses the kr8s library for native async Kubernetes operations that the
deployment flow needs without shelling out to kubectl.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import httpx
import kr8s
from kr8s.asyncio.objects import Namespace, new_class
from loguru import logger

from validatorctl.errors import DeploymentError
from validatorctl.infra.constants import ValidatorConstants

from .controller import ValidationResultInfo

_constants = ValidatorConstants()

ValidationResult = new_class(
    "ValidationResult",
    version=_constants.api_version,
    namespaced=True,
    asyncio=True,
)

# API server and transport failures; OSError covers refused connections and
# an unreadable kubeconfig
API_ERRORS: tuple[type[Exception], ...] = (
    kr8s.ServerError,
    kr8s.APITimeoutError,
    httpx.HTTPError,
    OSError,
)


@contextmanager
def cluster_errors(action: str) -> Iterator[None]:
    """Re-raise Kubernetes API failures as DeploymentError.

    Args:
        action: What was being attempted, e.g. "list validation results"
    """
    try:
        yield
    except API_ERRORS as e:
        logger.debug(f"Kubernetes API call failed ({action}): {e!r}")
        raise DeploymentError(
            f"Failed to {action}", details=str(e) or type(e).__name__
        ) from e


class Kr8sController:
    """Kubernetes controller using kr8s library.

    All methods are natively async, leveraging kr8s's async API. API
    failures surface as DeploymentError.

    Note: The kr8s API client is NOT cached because it's tied to the event loop
    that was running when created. When using run_sync() which calls asyncio.run(),
    each call creates a new event loop, making a cached API unusable.
    """

    def __init__(self, kubeconfig: Path | str | None = None) -> None:
        """Initialize the kr8s controller.

        Args:
            kubeconfig: Kubeconfig path; falls back to kr8s discovery when unset
        """
        self.kubeconfig = str(kubeconfig) if kubeconfig else None

    async def _get_api(self) -> Any:  # Returns kr8s._api.Api
        """Create a kr8s API client bound to the configured kubeconfig."""
        if self.kubeconfig:
            return await kr8s.asyncio.api(kubeconfig=self.kubeconfig)
        return await kr8s.asyncio.api()

    # =========================================================================
    # Namespace Operations
    # =========================================================================

    async def namespace_exists(self, namespace: str) -> bool:
        """Check if a namespace exists.

        Only a NotFound response means absent; connection and auth errors
        raise so a bad kubeconfig is not mistaken for a fresh cluster.

        Raises:
            DeploymentError: If the API server cannot be queried
        """
        with cluster_errors(f"check namespace {namespace}"):
            api = await self._get_api()
            try:
                await Namespace.get(namespace, api=api)
            except kr8s.NotFoundError:
                return False
        return True

    # =========================================================================
    # Validation Results
    # =========================================================================

    async def list_validation_results(
        self, namespace: str | None = None
    ) -> list[ValidationResultInfo]:
        """List ValidationResult objects in a namespace.

        Args:
            namespace: Namespace to list (default: the validator namespace)

        Returns:
            Parsed validation results, in API order

        Raises:
            DeploymentError: If the API server cannot be queried
        """
        results: list[ValidationResultInfo] = []
        with cluster_errors("list validation results"):
            api = await self._get_api()
            async for obj in ValidationResult.list(
                namespace=namespace or _constants.NAMESPACE, api=api
            ):
                results.append(ValidationResultInfo.from_dict(obj.raw))
        logger.debug(f"Listed {len(results)} validation result(s)")
        return results
