"""Subprocess execution service for supadeploy."""

import os
import subprocess
from typing import List, Optional

from supadeploy.errors import ProvisionError


class CommandRunner:
    """Runs external commands to completion with consistent error handling."""

    def __init__(self, logger, subprocess_module=subprocess):
        self.logger = logger
        self.subprocess = subprocess_module

    def run(
        self,
        cmd: List[str],
        capture_output: bool = False,
        cwd: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        cmd_str = " ".join(cmd)
        if cwd:
            self.logger.debug("Executing in %s: %s", cwd, cmd_str)
        else:
            self.logger.debug("Executing: %s", cmd_str)

        try:
            result = self.subprocess.run(
                cmd,
                text=True,
                capture_output=capture_output,
                cwd=cwd,
            )
        except FileNotFoundError as exc:
            if cwd and not os.path.isdir(cwd):
                raise ProvisionError(f"Working directory not found: {cwd}") from exc
            raise ProvisionError(
                f"Required command not found: {cmd[0]}. Please install it and try again."
            ) from exc
        except OSError as exc:
            raise ProvisionError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output captured (%s bytes).", len(result.stdout))

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").strip() if capture_output else ""
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"
        raise ProvisionError(message)
