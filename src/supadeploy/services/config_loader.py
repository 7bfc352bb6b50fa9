"""Configuration loader for supadeploy."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from supadeploy.errors import ProvisionError


class ConfigLoader:
    """Loads YAML configuration files for CLI and prompt defaults.

    Secrets are not accepted here; they are only typed at the prompt.
    """

    SUPPORTED_KEYS = {
        "workdir",
        "repo_url",
        "repo_dir",
        "required_tools",
        "verbose",
        "log_file",
        "dry_run",
        "manifest_file",
        "domain_name",
        "do_region",
        "do_image",
        "do_size",
        "ssh_username",
        "region_choices",
        "image_choices",
        "size_choices",
    }
    LIST_KEYS = {"required_tools", "region_choices", "image_choices", "size_choices"}

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise ProvisionError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ProvisionError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ProvisionError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise ProvisionError(f"Unknown configuration keys: {unknown_list}")

        for key in sorted(self.LIST_KEYS & set(parsed.keys())):
            value = parsed[key]
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                raise ProvisionError(f"Configuration key '{key}' must be a list of strings.")

        if parsed.get("required_tools") == []:
            raise ProvisionError("Configuration key 'required_tools' must name at least one tool.")

        return parsed
