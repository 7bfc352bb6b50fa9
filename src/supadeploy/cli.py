import logging
import os

import click
from rich.logging import RichHandler

from .core import ProvisionError, SupabaseProvisioner
from .services.config_loader import ConfigLoader

PROMPT_DEFAULT_KEYS = ("domain_name", "do_region", "do_image", "do_size", "ssh_username")
PROMPT_CHOICE_KEYS = {
    "do_region": "region_choices",
    "do_image": "image_choices",
    "do_size": "size_choices",
}


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help="Path to a YAML configuration file. Defaults to .supadeploy.yml if present.",
)
@click.option(
    "--workdir",
    required=False,
    type=click.Path(file_okay=False),
    help="Directory the supabase-on-do repository is cloned into (default: current directory).",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.option(
    "--dry-run",
    is_flag=True,
    default=None,
    help="Check tools and collect inputs, then print the plan without running anything.",
)
def main(config, workdir, verbose, log_file, dry_run):
    """Provision a self-hosted Supabase stack on DigitalOcean with Packer and Terraform."""
    logger = logging.getLogger("supadeploy")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), ".supadeploy.yml")
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except ProvisionError as exc:
        raise click.ClickException(str(exc)) from exc

    workdir = _resolve_option(workdir, config_values, "workdir")
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    dry_run = bool(_resolve_option(dry_run, config_values, "dry_run", default=False))

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    prompt_defaults = {
        key: str(config_values[key]) for key in PROMPT_DEFAULT_KEYS if config_values.get(key)
    }
    prompt_choices = {
        field: config_values[key]
        for field, key in PROMPT_CHOICE_KEYS.items()
        if config_values.get(key)
    }

    provisioner = SupabaseProvisioner(
        workdir=workdir,
        repo_url=config_values.get("repo_url", SupabaseProvisioner.REPO_URL),
        repo_dir=config_values.get("repo_dir", SupabaseProvisioner.REPO_DIR),
        required_tools=config_values.get("required_tools"),
        prompt_defaults=prompt_defaults,
        prompt_choices=prompt_choices,
        dry_run=dry_run,
        manifest_file=config_values.get("manifest_file"),
    )

    raise SystemExit(provisioner.run())


if __name__ == "__main__":
    main()
