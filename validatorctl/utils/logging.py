"""File logging for CLI runs.

User-facing output goes through the shared rich console; loguru records
the diagnostic trail (commands run, rendered values) in the run's log file.
"""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger


def configure_logging(log_file: Path | None, level: str = "DEBUG") -> None:
    """Route loguru output to a run's log file.

    The default stderr sink is removed so log lines never interleave with
    console output. Without a log file only warnings reach stderr.

    Args:
        log_file: Path of the log file, or None to log warnings to stderr
        level: Minimum level for the file sink
    """
    logger.remove()
    if log_file is None:
        logger.add(sys.stderr, level="WARNING")
        return
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        level=level.upper(),
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{line} - {message}",
    )
    logger.debug(f"Logging to {log_file}")
