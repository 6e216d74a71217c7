"""Exceptions raised by the deployment flow.

Every failure carries a short message for the console and optional details
(captured stderr, recovery hints) shown in a panel below it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from validatorctl.infra.k8s.controller import CommandResult


class DeploymentError(Exception):
    """Raised when a deployment operation fails."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigurationError(DeploymentError):
    """The configuration was rejected before any side effect occurred."""


class CommandFailedError(DeploymentError):
    """An external tool exited non-zero."""

    def __init__(
        self,
        message: str,
        result: CommandResult,
        details: str | None = None,
    ):
        self.result = result
        super().__init__(message, details or result.stderr.strip() or None)


class ReadinessError(CommandFailedError):
    """A readiness wait failed or timed out."""


class OrchestrationAborted(DeploymentError):
    """A deployment step failed; earlier steps are left in place.

    Attributes:
        step: Name of the step that failed
        last_state: Name of the last state reached before the failure
        cause: The underlying error
    """

    def __init__(self, step: str, last_state: str, cause: DeploymentError):
        self.step = step
        self.last_state = last_state
        self.cause = cause
        details = cause.details or ""
        hint = (
            f"Completed up to: {last_state}\n"
            "Re-run the same command to resume; completed steps are idempotent."
        )
        super().__init__(
            f"{step} failed: {cause.message}",
            details=f"{details}\n\n{hint}" if details else hint,
        )


def is_already_exists(stderr: str) -> bool:
    """Whether a kubectl failure only reports a pre-existing object.

    The match is a case-sensitive suffix check on the trimmed stderr, which
    is how kubectl phrases AlreadyExists conflicts.
    """
    return stderr.strip().endswith("already exists")
