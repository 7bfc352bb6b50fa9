"""Rendering of the Packer and Terraform variable files."""

import os
import tempfile
from typing import List, Sequence

from rich.markup import escape

from supadeploy.constants import (
    PACKER_VAR_FIELDS,
    TERRAFORM_OPTIONAL_FIELDS,
    TERRAFORM_VAR_FIELDS,
)
from supadeploy.errors import ProvisionError
from supadeploy.models import RunSettings, SessionParameters

_UNSAFE_CHARS = ('"', "\n")


class VariableFileWriter:
    """Writes ``key = "value"`` files consumed by packer and terraform.

    Values are interpolated verbatim. A double quote or newline inside a
    value produces invalid HCL, so such values are only flagged in the log.
    """

    def __init__(self, logger, console):
        self.logger = logger
        self.console = console

    def render(
        self,
        params: SessionParameters,
        fields: Sequence[str],
        optional_fields: Sequence[str] = (),
    ) -> str:
        width = max(len(name) for name in list(fields) + list(optional_fields))
        lines: List[str] = []
        for name in fields:
            lines.append(self._line(name, getattr(params, name), width))
        for name in optional_fields:
            value = getattr(params, name)
            if value:
                lines.append(self._line(name, value, width))
        return "\n".join(lines) + "\n"

    def write_packer_vars(self, params: SessionParameters, settings: RunSettings) -> str:
        path = settings.packer_vars_file
        self.console.print(f"[blue]Creating Packer variables file: {escape(path)}[/blue]")
        self._write(path, self.render(params, PACKER_VAR_FIELDS))
        self.console.print("[green]Packer variables file created.[/green]")
        return path

    def write_terraform_vars(self, params: SessionParameters, settings: RunSettings) -> str:
        path = settings.terraform_vars_file
        self.console.print(f"[blue]Creating Terraform variables file: {escape(path)}[/blue]")
        self._write(
            path,
            self.render(params, TERRAFORM_VAR_FIELDS, TERRAFORM_OPTIONAL_FIELDS),
        )
        self.console.print("[green]Terraform variables file created.[/green]")
        return path

    def write_all(self, params: SessionParameters, settings: RunSettings) -> List[str]:
        return [
            self.write_packer_vars(params, settings),
            self.write_terraform_vars(params, settings),
        ]

    def _line(self, name: str, value: str, width: int) -> str:
        self._warn_if_unsafe(name, value)
        return f'{name.ljust(width)} = "{value}"'

    def _warn_if_unsafe(self, name: str, value: str):
        if any(char in value for char in _UNSAFE_CHARS):
            self.logger.warning(
                "Value for '%s' contains a quote or newline and is written unescaped; "
                "the generated file may be rejected by the tool.",
                name,
            )

    def _write(self, path: str, content: str):
        directory = os.path.dirname(path) or "."
        try:
            fd, temp_path = tempfile.mkstemp(prefix=".vars-", dir=directory)
        except OSError as exc:
            raise ProvisionError(f"Could not write variables file '{path}': {exc}") from exc

        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as file_obj:
                file_obj.write(content)
            os.replace(temp_path, path)
        except OSError as exc:
            raise ProvisionError(f"Could not write variables file '{path}': {exc}") from exc
        finally:
            if os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError:
                    pass
        self.logger.info("Wrote %s", path)
