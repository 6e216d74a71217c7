"""Utility functions for the Kubernetes infrastructure layer.

Provides helper functions for running async code in sync contexts.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
from collections.abc import Coroutine
from typing import Any, TypeVar

T = TypeVar("T")


def run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine from synchronous code.

    Deployment steps and CLI commands are synchronous; the Kr8sController
    is async. Called from inside a running event loop, the coroutine runs on
    a fresh loop in a worker thread instead.

    Args:
        coro: The coroutine to execute

    Returns:
        The result of the coroutine

    Example:
        from validatorctl.infra.k8s import Kr8sController, run_sync

        controller = Kr8sController(kubeconfig)
        exists = run_sync(controller.namespace_exists("validator"))
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()
