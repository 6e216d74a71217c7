"""CLI settings resolved from the environment."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from validatorctl.infra.constants import ValidatorConstants


class CLISettings(BaseModel):
    """Process-level settings that are not part of the deployment spec.

    Attributes:
        workspace: Root directory for per-run workspaces
        log_level: Level of the file log sink
        grace_period: Seconds to wait after the controller becomes available
    """

    workspace: Path = Field(default_factory=lambda: Path.home() / ".validator")
    log_level: str = "DEBUG"
    grace_period: float = Field(default=ValidatorConstants.GRACE_PERIOD_SECONDS, ge=0)


def load_settings(env_file: Path | None = None) -> CLISettings:
    """Resolve settings from VALIDATORCTL_* variables.

    An optional .env file is loaded first without overriding variables
    already present in the environment.
    """
    load_dotenv(env_file or Path.cwd() / ".env", override=False)

    values: dict[str, str] = {}
    for field_name in CLISettings.model_fields:
        env_value = os.environ.get(f"VALIDATORCTL_{field_name.upper()}")
        if env_value:
            values[field_name] = env_value
    return CLISettings.model_validate(values)
