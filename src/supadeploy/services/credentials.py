"""Interactive collection of operator secrets and infrastructure choices."""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from supadeploy.models import SessionParameters

AFFIRMATIVE_PATTERN = re.compile(r"^ye?s?$", re.IGNORECASE)


@dataclass(frozen=True)
class PromptField:
    name: str
    label: str
    secret: bool = False


ACCOUNT_FIELDS = (
    PromptField("do_api_token", "Enter your DigitalOcean API Token (read/write)", secret=True),
    PromptField("do_spaces_access_key", "Enter your DO Spaces Access Key", secret=True),
    PromptField("do_spaces_secret_key", "Enter your DO Spaces Secret Key", secret=True),
    PromptField("domain_name", "Enter your Domain Name (e.g., example.com)"),
    PromptField("sendgrid_api_key", "Enter your SendGrid Admin API Token", secret=True),
)
USE_TF_CLOUD_FIELD = PromptField(
    "use_tf_cloud", "Are you using Terraform Cloud for state management? (yes/no)"
)
TF_CLOUD_TOKEN_FIELD = PromptField(
    "tf_cloud_token", "Enter your Terraform Cloud User API Token", secret=True
)
INFRASTRUCTURE_FIELDS = (
    PromptField("do_region", "Enter the DigitalOcean Region slug (e.g., nyc3)"),
    PromptField("do_image", "Enter the DigitalOcean Image slug (e.g., ubuntu-22-04-x64)"),
    PromptField("do_size", "Enter the DigitalOcean Droplet Size slug (e.g., s-2vcpu-4gb)"),
    PromptField("ssh_username", "Enter the SSH Username for the Droplet (e.g., root or your user)"),
)


def is_affirmative(answer: str) -> bool:
    return bool(AFFIRMATIVE_PATTERN.match(answer.strip()))


class CredentialCollector:
    """Prompts for every session parameter in a fixed order."""

    def __init__(
        self,
        provider,
        console,
        logger,
        defaults: Optional[Dict[str, str]] = None,
        choices: Optional[Dict[str, Sequence[str]]] = None,
    ):
        self.provider = provider
        self.console = console
        self.logger = logger
        self.defaults = defaults or {}
        self.choices = {name: list(values) for name, values in (choices or {}).items() if values}

    def collect(self) -> SessionParameters:
        self.console.print("[bold]Collecting required parameters:[/bold]")
        values: Dict[str, str] = {}

        for field in ACCOUNT_FIELDS:
            values[field.name] = self._ask(field)

        use_tf_cloud = self._ask(USE_TF_CLOUD_FIELD)
        if is_affirmative(use_tf_cloud):
            values[TF_CLOUD_TOKEN_FIELD.name] = self._ask(TF_CLOUD_TOKEN_FIELD)
        else:
            values[TF_CLOUD_TOKEN_FIELD.name] = ""
        self.logger.debug("Terraform Cloud token requested: %s", bool(values["tf_cloud_token"]))

        self.console.print()
        self.console.print("[bold]--- Packer Specific Variables ---[/bold]")
        for field in INFRASTRUCTURE_FIELDS:
            if field.name in self.choices:
                values[field.name] = self.select(field, self.choices[field.name])
            else:
                values[field.name] = self._ask(field)

        params = SessionParameters(**values)
        self.logger.info("Collected parameters: %r", params)
        return params

    def select(self, field: PromptField, options: List[str]) -> str:
        """Numbered selection, re-prompted until the answer is in range."""
        self.console.print(f"[bold]{field.label}[/bold]")
        for index, option in enumerate(options, 1):
            self.console.print(f"  {index}. [cyan]{option}[/cyan]")

        default = self.defaults.get(field.name)
        default_choice = str(options.index(default) + 1) if default in options else None

        while True:
            answer = self.provider.ask(
                field.name,
                f"Select 1-{len(options)}",
                secret=False,
                default=default_choice,
            )
            try:
                choice = int(answer.strip())
            except ValueError:
                choice = 0
            if 1 <= choice <= len(options):
                return options[choice - 1]
            self.console.print(f"[red]Please select a number between 1 and {len(options)}.[/red]")

    def _ask(self, field: PromptField) -> str:
        default = None if field.secret else self.defaults.get(field.name)
        return self.provider.ask(field.name, field.label, secret=field.secret, default=default)
