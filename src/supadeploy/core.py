import logging
import os
from functools import partial
from typing import Dict, List, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .constants import MANIFEST_DIR, MANIFEST_FILE, REPO_DIR, REPO_URL, REQUIRED_TOOLS
from .errors import ProvisionError
from .models import RunSettings, SessionParameters
from .services.command_runner import CommandRunner
from .services.credentials import CredentialCollector
from .services.manifest import ManifestService
from .services.prerequisites import PrerequisiteService
from .services.prompts import RichPromptProvider
from .services.reporter import OutputReporter
from .services.repository import RepositoryService
from .services.step_runner import Step, StepRunner
from .services.tool_driver import ToolDriver
from .services.variable_files import VariableFileWriter

console = Console()
logger = logging.getLogger("supadeploy")

BANNER = """\
[bold]===================================================
Supabase on DigitalOcean Self-Hosting Setup
===================================================[/bold]
This tool automates the setup described by the
digitalocean/supabase-on-do GitHub repository.

[bold yellow]!!! IMPORTANT !!![/bold yellow]
Before running it, make sure you have manually completed:
1. Creating DigitalOcean and SendGrid accounts.
2. Generating a DigitalOcean API Token (read/write).
3. Generating a DO Spaces Access Key and Secret.
4. Adding your Domain to DigitalOcean DNS and pointing nameservers.
5. Generating a SendGrid Admin API Token.
6. (Optional) Generating a Terraform Cloud User API Token.

Sensitive information will be written to local files.
Ensure you run this in a secure environment.
==================================================="""


class SupabaseProvisioner:
    REPO_URL = REPO_URL
    REPO_DIR = REPO_DIR

    def __init__(
        self,
        workdir: Optional[str] = None,
        repo_url: str = REPO_URL,
        repo_dir: str = REPO_DIR,
        required_tools: Optional[Sequence[str]] = None,
        prompt_defaults: Optional[Dict[str, str]] = None,
        prompt_choices: Optional[Dict[str, Sequence[str]]] = None,
        dry_run: bool = False,
        manifest_file: Optional[str] = None,
        prompt_provider=None,
        command_runner: Optional[CommandRunner] = None,
    ):
        self.settings = RunSettings(
            workdir=os.path.abspath(workdir or os.getcwd()),
            repo_url=repo_url,
            repo_dir=repo_dir,
        )
        self.required_tools = list(REQUIRED_TOOLS if required_tools is None else required_tools)
        self.dry_run = dry_run
        self.manifest_file = manifest_file or os.path.join(
            self.settings.workdir, MANIFEST_DIR, MANIFEST_FILE
        )

        self.command_runner = command_runner or CommandRunner(logger=logger)
        self.prerequisite_service = PrerequisiteService(logger=logger, console=console)
        self.collector = CredentialCollector(
            provider=prompt_provider or RichPromptProvider(console=console),
            console=console,
            logger=logger,
            defaults=prompt_defaults,
            choices=prompt_choices,
        )
        self.repository_service = RepositoryService(logger=logger, console=console)
        self.variable_writer = VariableFileWriter(logger=logger, console=console)
        self.tool_driver = ToolDriver(run_cmd=self._run_cmd, logger=logger, console=console)
        self.reporter = OutputReporter(logger=logger, console=console)
        self.manifest_service: Optional[ManifestService] = None
        self.step_runner = StepRunner(logger=logger, console=console)

    def _run_cmd(self, cmd: List[str], capture_output: bool = False, cwd=None):
        return self.command_runner.run(cmd, capture_output=capture_output, cwd=cwd)

    def check_prerequisites(self):
        self.prerequisite_service.check(self.required_tools)

    def collect_parameters(self) -> SessionParameters:
        return self.collector.collect()

    def clone_repository(self) -> bool:
        return self.repository_service.ensure_clone(self.settings, self._run_cmd)

    def verify_repository(self):
        self.repository_service.verify_layout(self.settings)

    def write_variable_files(self, params: SessionParameters) -> List[str]:
        paths = self.variable_writer.write_all(params, self.settings)
        if self.manifest_service:
            for path in paths:
                self.manifest_service.record_variable_file(path)
        return paths

    def report_outputs(self, params: SessionParameters) -> str:
        console.print("[bold]--- Retrieving Terraform outputs ---[/bold]")
        outputs = self.tool_driver.fetch_outputs(self.settings.terraform_dir)
        url = self.reporter.report(outputs, params, self.settings)
        if self.manifest_service:
            self.manifest_service.record_studio_url(url)
        return url

    def build_steps(self, params: SessionParameters) -> List[Step]:
        settings = self.settings
        driver = self.tool_driver
        return [
            Step(
                "clone_repository",
                "Cloning supabase-on-do repository",
                self.clone_repository,
                ["git", "clone", settings.repo_url, settings.repo_dir],
                settings.workdir,
            ),
            Step("verify_repository", "Checking repository layout", self.verify_repository),
            Step(
                "write_variable_files",
                "Writing Packer and Terraform variable files",
                partial(self.write_variable_files, params),
            ),
            Step(
                "packer_init",
                "Initializing Packer",
                partial(driver.packer_init, settings.packer_dir),
                driver.PACKER_INIT,
                settings.packer_dir,
            ),
            Step(
                "packer_build",
                "Building Packer snapshot",
                partial(driver.packer_build, settings.packer_dir),
                driver.PACKER_BUILD,
                settings.packer_dir,
            ),
            Step(
                "terraform_init",
                "Initializing Terraform",
                partial(driver.terraform_init, settings.terraform_dir),
                driver.TERRAFORM_INIT,
                settings.terraform_dir,
            ),
            Step(
                "terraform_apply_first_pass",
                "Applying Terraform plan (first pass)",
                partial(driver.terraform_apply, settings.terraform_dir, "first pass"),
                driver.TERRAFORM_APPLY,
                settings.terraform_dir,
            ),
            # The SendGrid resources only converge on a second apply.
            Step(
                "terraform_apply_second_pass",
                "Applying Terraform plan again to verify SendGrid components",
                partial(driver.terraform_apply, settings.terraform_dir, "second pass"),
                driver.TERRAFORM_APPLY,
                settings.terraform_dir,
            ),
            Step(
                "report_outputs",
                "Showing generated passwords and tokens",
                partial(self.report_outputs, params),
                ["terraform", "output", "-raw", "<name>"],
                settings.terraform_dir,
            ),
        ]

    def print_plan(self, steps: List[Step]):
        table = Table(title="Provisioning plan (dry run)")
        table.add_column("#", justify="right")
        table.add_column("Step")
        table.add_column("Command")
        table.add_column("Directory")
        for index, step in enumerate(steps, 1):
            command = " ".join(step.command) if step.command else "-"
            table.add_row(str(index), step.description, escape(command), escape(step.cwd or "-"))
        console.print(table)
        console.print(f"[dim]Repository: {escape(self.settings.repo_path)}[/dim]")
        console.print(f"[dim]Packer variables: {escape(self.settings.packer_vars_file)}[/dim]")
        console.print(f"[dim]Terraform variables: {escape(self.settings.terraform_vars_file)}[/dim]")

    def run(self) -> int:
        exit_code = 1
        manifest_status = "failed"
        manifest_error: Optional[str] = None

        try:
            console.print(BANNER)
            logger.info("Starting supadeploy...")

            self.check_prerequisites()
            params = self.collect_parameters()
            steps = self.build_steps(params)

            if self.dry_run:
                self.print_plan(steps)
                console.print("[green]Dry run complete. Nothing was changed.[/green]")
                exit_code = 0
                return exit_code

            self.manifest_service = ManifestService(self.manifest_file, logger=logger)
            self.step_runner.manifest_service = self.manifest_service
            self.manifest_service.start_run(self.settings, params)

            self.step_runner.run(steps)

            manifest_status = "success"
            manifest_error = None
            exit_code = 0
            return exit_code

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            manifest_status = "aborted"
            manifest_error = "Operation cancelled by user."
            exit_code = 1
            return exit_code
        except ProvisionError as exc:
            failed_step = self.step_runner.current_step
            if failed_step:
                console.print(f"[bold red]Step '{failed_step}' failed.[/bold red]")
            console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
            logger.error(str(exc))
            manifest_status = "failed"
            manifest_error = str(exc)
            exit_code = 1
            return exit_code
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {escape(str(exc))}")
            logger.exception("Unexpected error")
            manifest_status = "failed"
            manifest_error = str(exc)
            exit_code = 1
            return exit_code
        finally:
            if self.manifest_service:
                self.manifest_service.finalize(manifest_status, error=manifest_error)
