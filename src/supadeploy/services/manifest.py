"""JSON record of a provisioning run.

The manifest says what was provisioned and how far the run got: the
checkout it used, the droplet target, each step with the command it ran and
the directory it ran in, the variable files that were written and the
Studio URL once it is known. Secret values never reach it.
"""

import json
import os
import tempfile
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from supadeploy.models import RunSettings, SessionParameters


@dataclass
class StepRecord:
    name: str
    command: Optional[str]
    cwd: Optional[str]
    started_at: str
    status: str = "running"
    finished_at: Optional[str] = None
    duration_seconds: Optional[float] = None
    error: Optional[str] = None


@dataclass
class ProvisionTarget:
    domain_name: str
    do_region: str
    do_image: str
    do_size: str
    terraform_cloud: bool
    studio_url: Optional[str] = None


@dataclass
class RunManifest:
    repo_url: str
    repo_path: str
    target: ProvisionTarget
    status: str = "running"
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    duration_seconds: Optional[float] = None
    steps: List[StepRecord] = field(default_factory=list)
    variable_files: List[str] = field(default_factory=list)
    error: Optional[str] = None


class ManifestService:
    def __init__(self, manifest_file: str, logger):
        self.manifest_file = manifest_file
        self.logger = logger
        self.manifest: Optional[RunManifest] = None
        self._workdir: Optional[str] = None

    def start_run(self, settings: RunSettings, params: SessionParameters):
        self._workdir = settings.workdir
        self.manifest = RunManifest(
            repo_url=settings.repo_url,
            repo_path=settings.repo_path,
            target=ProvisionTarget(
                domain_name=params.domain_name,
                do_region=params.do_region,
                do_image=params.do_image,
                do_size=params.do_size,
                terraform_cloud=params.uses_terraform_cloud,
            ),
            started_at=self._now(),
        )
        self.write()

    def step_started(
        self,
        name: str,
        command: Optional[List[str]] = None,
        cwd: Optional[str] = None,
    ):
        self.manifest.steps.append(
            StepRecord(
                name=name,
                command=" ".join(command) if command else None,
                cwd=cwd,
                started_at=self._now(),
            )
        )
        self.write()

    def step_finished(self, name: str, status: str, error: Optional[str] = None):
        for record in reversed(self.manifest.steps):
            if record.name == name and record.status == "running":
                record.status = status
                record.finished_at = self._now()
                record.duration_seconds = self._elapsed(record.started_at, record.finished_at)
                record.error = error
                break
        self.write()

    def record_variable_file(self, path: str):
        # Relative to the working directory.
        self.manifest.variable_files.append(os.path.relpath(path, self._workdir))
        self.write()

    def record_studio_url(self, url: str):
        self.manifest.target.studio_url = url
        self.write()

    def finalize(self, status: str, error: Optional[str] = None):
        self.manifest.status = status
        self.manifest.finished_at = self._now()
        self.manifest.duration_seconds = self._elapsed(
            self.manifest.started_at, self.manifest.finished_at
        )
        self.manifest.error = error
        self.write()

    def write(self):
        directory = os.path.dirname(self.manifest_file) or "."
        try:
            os.makedirs(directory, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(prefix="run-manifest-", suffix=".json", dir=directory)
        except OSError as exc:
            self.logger.warning("Could not write manifest file '%s': %s", self.manifest_file, exc)
            return

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
                json.dump(asdict(self.manifest), file_obj, indent=2, sort_keys=True)
                file_obj.write("\n")
            os.replace(temp_path, self.manifest_file)
        except OSError as exc:
            self.logger.warning("Could not write manifest file '%s': %s", self.manifest_file, exc)
            try:
                os.remove(temp_path)
            except OSError:
                pass

    @staticmethod
    def _elapsed(started_at: str, finished_at: str) -> float:
        started = datetime.fromisoformat(started_at)
        finished = datetime.fromisoformat(finished_at)
        return (finished - started).total_seconds()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()
