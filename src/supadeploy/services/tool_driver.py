"""Packer and Terraform invocations in their fixed order."""

from typing import Callable, Dict, Iterable, List

from supadeploy.constants import TERRAFORM_OUTPUTS
from supadeploy.errors import ProvisionError
from supadeploy.errors_catalog import actionable_error


class ToolDriver:
    """Runs packer/terraform subcommands and turns failures into actionable errors."""

    PACKER_INIT = ["packer", "init", "."]
    PACKER_BUILD = ["packer", "build", "."]
    TERRAFORM_INIT = ["terraform", "init"]
    TERRAFORM_APPLY = ["terraform", "apply"]

    def __init__(self, run_cmd: Callable, logger, console):
        self.run_cmd = run_cmd
        self.logger = logger
        self.console = console

    def packer_init(self, packer_dir: str):
        self._run("Packer initialization", self.PACKER_INIT, packer_dir)
        self.console.print("[green]Packer initialized.[/green]")

    def packer_build(self, packer_dir: str):
        self.console.print("[yellow]Building Packer snapshot (this will take some time)...[/yellow]")
        self._run("Packer build", self.PACKER_BUILD, packer_dir)
        self.console.print("[green]Packer snapshot built successfully.[/green]")

    def terraform_init(self, terraform_dir: str):
        self._run("Terraform initialization", self.TERRAFORM_INIT, terraform_dir)
        self.console.print("[green]Terraform initialized.[/green]")

    def terraform_apply(self, terraform_dir: str, pass_label: str):
        self.console.print("[yellow]You will be prompted to confirm by typing 'yes'.[/yellow]")
        label = f"Terraform apply ({pass_label})"
        self._run(label, self.TERRAFORM_APPLY, terraform_dir)
        self.console.print(f"[green]{label} completed.[/green]")

    @staticmethod
    def output_command(name: str) -> List[str]:
        return ["terraform", "output", "-raw", name]

    def terraform_output(self, terraform_dir: str, name: str) -> str:
        result = self._run(
            f"Terraform output '{name}'",
            self.output_command(name),
            terraform_dir,
            capture_output=True,
        )
        return (result.stdout or "").strip()

    def fetch_outputs(
        self,
        terraform_dir: str,
        names: Iterable[str] = TERRAFORM_OUTPUTS,
    ) -> Dict[str, str]:
        return {name: self.terraform_output(terraform_dir, name) for name in names}

    def _run(self, label: str, cmd: List[str], cwd: str, capture_output: bool = False):
        self.logger.info("%s: %s", label, " ".join(cmd))
        try:
            return self.run_cmd(cmd, capture_output=capture_output, cwd=cwd)
        except ProvisionError as exc:
            raise ProvisionError(
                f"{actionable_error('tool_step_failed', label=label, tool=cmd[0])}\n{exc}"
            ) from exc
