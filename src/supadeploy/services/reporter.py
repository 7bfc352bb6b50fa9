"""Final report: generated secrets and operator instructions."""

import os
from typing import Dict

from rich.markup import escape

from supadeploy.constants import STUDIO_SUBDOMAIN, STUDIO_USERNAME, TERRAFORM_OUTPUTS
from supadeploy.models import RunSettings, SessionParameters


def target_url(domain_name: str) -> str:
    return f"{STUDIO_SUBDOMAIN}.{domain_name}"


class OutputReporter:
    def __init__(self, logger, console):
        self.logger = logger
        self.console = console

    def report(self, outputs: Dict[str, str], params: SessionParameters, settings: RunSettings):
        self.console.print()
        self.console.print("[bold]--- Generated Passwords and Tokens ---[/bold]")
        self.console.print("[yellow]Showing generated passwords and tokens. Keep these secure![/yellow]")
        for name in TERRAFORM_OUTPUTS:
            self.console.print(f"[cyan]{name}[/cyan] = {escape(outputs.get(name, ''))}", highlight=False)
        self.console.print("--------------------------------------")
        self.console.print()

        url = target_url(params.domain_name)
        self.console.print("[bold green]Setup complete![/bold green]")
        self.console.print("Please wait 5-10 minutes for everything to start up.")
        self.console.print(f"Then, point your browser to: [bold]{escape(url)}[/bold]")
        self.console.print(
            f"When prompted for authentication, use the username '{STUDIO_USERNAME}' "
            "and the 'htpasswd' shown above."
        )
        self.console.print()
        self.console.print("Remember to secure the variable files created:")
        for path in (settings.packer_vars_file, settings.terraform_vars_file):
            self.console.print(f"- {escape(os.path.relpath(path, settings.workdir))}")
        self.console.print()
        terraform_dir = escape(os.path.join(settings.repo_dir, "terraform"))
        self.console.print(
            "To destroy the created resources later, navigate to the "
            f"'{terraform_dir}' directory and run 'terraform destroy'."
        )
        self.logger.info("Provisioning finished for %s", url)
        return url
