"""Checkout management for the supabase-on-do repository."""

import os
from typing import Callable

from rich.markup import escape

from supadeploy.errors import ProvisionError
from supadeploy.errors_catalog import actionable_error
from supadeploy.models import RunSettings


class RepositoryService:
    """Clones the repository once and verifies the expected layout."""

    def __init__(self, logger, console):
        self.logger = logger
        self.console = console

    def ensure_clone(self, settings: RunSettings, run_cmd: Callable) -> bool:
        """Returns True when a clone happened, False when it was skipped."""
        if os.path.isdir(settings.repo_path):
            self.console.print(
                f"[yellow]Repository directory '{escape(settings.repo_dir)}' already exists. "
                "Skipping clone.[/yellow]"
            )
            self.console.print("[yellow]Please ensure it's the correct repository.[/yellow]")
            self.logger.info("Reusing existing checkout at %s", settings.repo_path)
            return False

        self.console.print(f"[blue]Cloning repository '{escape(settings.repo_url)}'...[/blue]")
        try:
            run_cmd(
                ["git", "clone", settings.repo_url, settings.repo_dir],
                cwd=settings.workdir,
            )
        except ProvisionError as exc:
            raise ProvisionError(
                f"{actionable_error('clone_failed', url=settings.repo_url)}\n{exc}"
            ) from exc

        self.console.print("[green]Repository cloned successfully.[/green]")
        self.logger.info("Cloned %s into %s", settings.repo_url, settings.repo_path)
        return True

    def verify_layout(self, settings: RunSettings):
        for path in (settings.repo_path, settings.packer_dir, settings.terraform_dir):
            if not os.path.isdir(path):
                raise ProvisionError(
                    actionable_error(
                        "directory_missing",
                        path=path,
                        repo_dir=settings.repo_dir,
                        url=settings.repo_url,
                    )
                )
        self.logger.debug("Checkout layout verified at %s", settings.repo_path)
