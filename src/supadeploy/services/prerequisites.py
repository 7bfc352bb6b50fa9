"""Prerequisite checks for the external tools supadeploy drives."""

import platform
import re
import shutil
import subprocess
from typing import Dict, Iterable, Optional

from packaging import version

from supadeploy.constants import MIN_TOOL_VERSIONS, REQUIRED_TOOLS
from supadeploy.errors import ProvisionError
from supadeploy.errors_catalog import actionable_error

_INSTALL_DOCS = {
    "git": "https://git-scm.com/book/en/v2/Getting-Started-Installing-Git",
    "doctl": "https://docs.digitalocean.com/reference/doctl/how-to/install/",
    "packer": "https://developer.hashicorp.com/packer/tutorials/docker-get-started/get-started-install-cli",
    "terraform": "https://developer.hashicorp.com/terraform/tutorials/aws-get-started/install-cli",
}

_INSTALL_COMMANDS: Dict[str, Dict[str, str]] = {
    "Darwin": {
        "git": "xcode-select --install",
        "doctl": "brew install doctl",
        "packer": "brew tap hashicorp/tap && brew install hashicorp/tap/packer",
        "terraform": "brew tap hashicorp/tap && brew install hashicorp/tap/terraform",
    },
    "Linux": {
        "git": "sudo apt-get install git (or your distribution's package manager)",
        "doctl": "sudo snap install doctl",
        "packer": "sudo apt-get install packer (after adding the HashiCorp apt repository)",
        "terraform": "sudo apt-get install terraform (after adding the HashiCorp apt repository)",
    },
    "Windows": {
        "git": "winget install --id Git.Git -e",
        "doctl": "download the Windows archive from https://github.com/digitalocean/doctl/releases",
        "packer": "choco install packer",
        "terraform": "choco install terraform",
    },
}

_VERSION_PATTERN = re.compile(r"v?(\d+\.\d+(?:\.\d+)?)")


class PrerequisiteService:
    """Verifies required executables are on PATH before anything is prompted."""

    def __init__(
        self,
        logger,
        console,
        shutil_module=shutil,
        platform_module=platform,
        subprocess_module=subprocess,
    ):
        self.logger = logger
        self.console = console
        self.shutil = shutil_module
        self.platform = platform_module
        self.subprocess = subprocess_module

    def install_hint(self, tool: str) -> str:
        system = self.platform.system()
        command = _INSTALL_COMMANDS.get(system, {}).get(tool)
        docs = _INSTALL_DOCS.get(tool)

        parts = []
        if command:
            parts.append(f"On {system}: {command}.")
        if docs:
            parts.append(f"Instructions: {docs}")
        return " ".join(parts)

    def check(self, tools: Optional[Iterable[str]] = None):
        self.console.print("[blue]Checking for required tools...[/blue]")
        for tool in REQUIRED_TOOLS if tools is None else tools:
            path = self.shutil.which(tool)
            if path is None:
                raise ProvisionError(
                    actionable_error("missing_tool", tool=tool, hint=self.install_hint(tool))
                )
            self.logger.debug("Found %s at %s", tool, path)
            self._check_minimum_version(tool)

        self.console.print("[green]All required tools found.[/green]")

    def detect_version(self, tool: str) -> Optional[str]:
        try:
            result = self.subprocess.run(
                [tool, "version"],
                text=True,
                capture_output=True,
            )
        except OSError as exc:
            self.logger.warning("Could not run '%s version': %s", tool, exc)
            return None

        match = _VERSION_PATTERN.search(result.stdout or "")
        if result.returncode != 0 or not match:
            self.logger.warning("Could not determine %s version.", tool)
            return None
        return match.group(1)

    def _check_minimum_version(self, tool: str):
        minimum = MIN_TOOL_VERSIONS.get(tool)
        if not minimum:
            return

        found = self.detect_version(tool)
        if found is None:
            return

        if version.parse(found) < version.parse(minimum):
            raise ProvisionError(
                actionable_error(
                    "tool_too_old",
                    tool=tool,
                    found=found,
                    minimum=minimum,
                    hint=self.install_hint(tool),
                )
            )
        self.logger.debug("%s %s satisfies minimum %s", tool, found, minimum)
