"""Shared domain models for supadeploy."""

import os
from dataclasses import dataclass, field

from .constants import (
    PACKER_DIR,
    PACKER_VARS_FILE,
    REPO_DIR,
    REPO_URL,
    TERRAFORM_DIR,
    TERRAFORM_VARS_FILE,
)


@dataclass(frozen=True)
class SessionParameters:
    """Operator inputs collected once per run. Secrets are kept out of repr."""

    do_api_token: str = field(repr=False)
    do_spaces_access_key: str = field(repr=False)
    do_spaces_secret_key: str = field(repr=False)
    domain_name: str
    sendgrid_api_key: str = field(repr=False)
    do_region: str
    do_image: str
    do_size: str
    ssh_username: str
    tf_cloud_token: str = field(default="", repr=False)

    @property
    def uses_terraform_cloud(self) -> bool:
        return bool(self.tf_cloud_token)


@dataclass(frozen=True)
class RunSettings:
    """Filesystem layout of a provisioning run."""

    workdir: str
    repo_url: str = REPO_URL
    repo_dir: str = REPO_DIR

    @property
    def repo_path(self) -> str:
        return os.path.join(self.workdir, self.repo_dir)

    @property
    def packer_dir(self) -> str:
        return os.path.join(self.repo_path, PACKER_DIR)

    @property
    def terraform_dir(self) -> str:
        return os.path.join(self.repo_path, TERRAFORM_DIR)

    @property
    def packer_vars_file(self) -> str:
        return os.path.join(self.packer_dir, PACKER_VARS_FILE)

    @property
    def terraform_vars_file(self) -> str:
        return os.path.join(self.terraform_dir, TERRAFORM_VARS_FILE)
