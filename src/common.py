"""Common utilities for driving the provisioning tool."""

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_TOOL = 'terraform'


def run_command(
    cmd: list[str],
    cwd: Optional[Path] = None,
    capture: bool = False,
    env: Optional[dict] = None
) -> tuple[int, str, str]:
    """Run a command and return (returncode, stdout, stderr).

    Output streams are inherited unless capture=True, so stdout/stderr are
    empty strings in that case. A command that cannot be launched returns -1
    with the OS error text as stderr.
    """
    logger.debug(f"Running: {' '.join(cmd)}" + (f" (cwd: {cwd})" if cwd else ''))
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=capture,
            text=True,
            env=env,
            check=False  # We handle return codes explicitly
        )
        return result.returncode, result.stdout or '', result.stderr or ''
    except OSError as e:
        return -1, '', str(e)


def tool_env(state_file: str) -> dict:
    """Inherited environment plus TF_STATE for one feature."""
    return {**os.environ, 'TF_STATE': state_file}
