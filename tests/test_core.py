import io
import json
import subprocess
from pathlib import Path

import pytest
from rich.console import Console

import supadeploy.core as core_module
from supadeploy.core import ProvisionError, SupabaseProvisioner
from supadeploy.services.prompts import ScriptedPromptProvider

TERRAFORM_VALUES = {
    "htpasswd": "basic-auth-pw",
    "psql_pass": "pg-pw",
    "jwt": "jwt-secret",
    "jwt_anon": "anon-key",
    "jwt_service_role": "service-key",
}


class FakeShutil:
    def __init__(self, missing=()):
        self.missing = set(missing)

    def which(self, tool):
        return None if tool in self.missing else f"/usr/local/bin/{tool}"


class FakeVersionSubprocess:
    def run(self, cmd, **_kwargs):
        return subprocess.CompletedProcess(cmd, 0, stdout="Packer v1.11.2\n", stderr="")


class FakeCommandRunner:
    """Records commands and simulates git/terraform side effects."""

    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on

    def run(self, cmd, capture_output=False, cwd=None):
        self.calls.append((list(cmd), cwd))
        if self.fail_on and cmd[: len(self.fail_on)] == self.fail_on:
            raise ProvisionError(f"Command failed (1): {' '.join(cmd)}")
        if cmd[:2] == ["git", "clone"]:
            checkout = Path(cwd) / cmd[3]
            (checkout / "packer").mkdir(parents=True)
            (checkout / "terraform").mkdir(parents=True)
        stdout = ""
        if cmd[:2] == ["terraform", "output"]:
            stdout = TERRAFORM_VALUES[cmd[-1]] + "\n"
        return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr="")

    @property
    def commands(self):
        return [" ".join(cmd) for cmd, _ in self.calls]


def _answers(**overrides):
    answers = {
        "do_api_token": "dop_v1_token",
        "do_spaces_access_key": "SPACESKEY",
        "do_spaces_secret_key": "spaces-secret",
        "domain_name": "example.com",
        "sendgrid_api_key": "SG.key",
        "use_tf_cloud": "no",
        "tf_cloud_token": "tfc-token",
        "do_region": "nyc3",
        "do_image": "ubuntu-22-04-x64",
        "do_size": "s-2vcpu-4gb",
        "ssh_username": "root",
    }
    answers.update(overrides)
    return answers


def build_provisioner(tmp_path, answers=None, missing=(), fail_on=None, **kwargs):
    provider = ScriptedPromptProvider(answers or _answers())
    runner = FakeCommandRunner(fail_on=fail_on)
    provisioner = SupabaseProvisioner(
        workdir=str(tmp_path),
        prompt_provider=provider,
        command_runner=runner,
        **kwargs,
    )
    provisioner.prerequisite_service.shutil = FakeShutil(missing)
    provisioner.prerequisite_service.subprocess = FakeVersionSubprocess()
    return provisioner, provider, runner


def _manifest(tmp_path):
    return json.loads((tmp_path / ".supadeploy" / "run-manifest.json").read_text(encoding="utf-8"))


EXPECTED_COMMANDS = [
    "git clone https://github.com/digitalocean/supabase-on-do.git supabase-on-do",
    "packer init .",
    "packer build .",
    "terraform init",
    "terraform apply",
    "terraform apply",
    "terraform output -raw htpasswd",
    "terraform output -raw psql_pass",
    "terraform output -raw jwt",
    "terraform output -raw jwt_anon",
    "terraform output -raw jwt_service_role",
]


def test_missing_tool_exits_before_any_prompt(tmp_path):
    provisioner, provider, runner = build_provisioner(tmp_path, missing=["terraform"])

    assert provisioner.run() == 1
    assert provider.requests == []
    assert runner.calls == []
    assert not (tmp_path / ".supadeploy").exists()


def test_full_run_executes_fixed_sequence(tmp_path, capsys):
    provisioner, _, runner = build_provisioner(tmp_path)

    assert provisioner.run() == 0

    assert runner.commands == EXPECTED_COMMANDS
    checkout = tmp_path / "supabase-on-do"
    packer_cwds = {cwd for cmd, cwd in runner.calls if cmd[0] == "packer"}
    terraform_cwds = {cwd for cmd, cwd in runner.calls if cmd[0] == "terraform"}
    assert packer_cwds == {str(checkout / "packer")}
    assert terraform_cwds == {str(checkout / "terraform")}

    tfvars = (checkout / "terraform" / "terraform.tfvars").read_text(encoding="utf-8")
    assert "tf_cloud_token" not in tfvars
    assert 'domain_name          = "example.com"' in tfvars
    pkrvars = (checkout / "packer" / "supabase.auto.pkrvars.hcl").read_text(encoding="utf-8")
    assert pkrvars.splitlines()[0] == 'do_api_token = "dop_v1_token"'

    output = capsys.readouterr().out
    assert "supabase.example.com" in output
    assert "service-key" in output

    manifest = _manifest(tmp_path)
    assert manifest["status"] == "success"
    assert [step["name"] for step in manifest["steps"]] == [
        "clone_repository",
        "verify_repository",
        "write_variable_files",
        "packer_init",
        "packer_build",
        "terraform_init",
        "terraform_apply_first_pass",
        "terraform_apply_second_pass",
        "report_outputs",
    ]
    assert "dop_v1_token" not in json.dumps(manifest)
    assert manifest["target"]["studio_url"] == "supabase.example.com"
    assert manifest["target"]["terraform_cloud"] is False
    assert manifest["variable_files"] == [
        "supabase-on-do/packer/supabase.auto.pkrvars.hcl",
        "supabase-on-do/terraform/terraform.tfvars",
    ]
    steps = {step["name"]: step for step in manifest["steps"]}
    assert steps["clone_repository"]["cwd"] == str(tmp_path)
    assert steps["packer_build"]["command"] == "packer build ."
    assert steps["packer_build"]["cwd"] == str(checkout / "packer")
    assert steps["terraform_apply_second_pass"]["cwd"] == str(checkout / "terraform")


def test_terraform_cloud_token_written_when_selected(tmp_path):
    provisioner, _, _ = build_provisioner(tmp_path, answers=_answers(use_tf_cloud="y"))

    assert provisioner.run() == 0

    tfvars = (tmp_path / "supabase-on-do" / "terraform" / "terraform.tfvars").read_text(
        encoding="utf-8"
    )
    assert tfvars.splitlines()[-1] == 'tf_cloud_token       = "tfc-token"'


def test_existing_checkout_skips_clone(tmp_path):
    checkout = tmp_path / "supabase-on-do"
    (checkout / "packer").mkdir(parents=True)
    (checkout / "terraform").mkdir(parents=True)
    provisioner, _, runner = build_provisioner(tmp_path)

    assert provisioner.run() == 0
    assert runner.commands == EXPECTED_COMMANDS[1:]


@pytest.mark.parametrize(
    "fail_on, executed, failed_step",
    [
        (["git", "clone"], 1, "clone_repository"),
        (["packer", "init"], 2, "packer_init"),
        (["packer", "build"], 3, "packer_build"),
        (["terraform", "init"], 4, "terraform_init"),
        (["terraform", "apply"], 5, "terraform_apply_first_pass"),
    ],
)
def test_failing_step_stops_the_sequence(tmp_path, capsys, fail_on, executed, failed_step):
    provisioner, _, runner = build_provisioner(tmp_path, fail_on=fail_on)

    assert provisioner.run() == 1
    assert runner.commands == EXPECTED_COMMANDS[:executed]
    assert f"Step '{failed_step}' failed." in capsys.readouterr().out

    manifest = _manifest(tmp_path)
    assert manifest["status"] == "failed"
    assert manifest["steps"][-1]["name"] == failed_step
    assert manifest["steps"][-1]["status"] == "failed"
    assert len(manifest["variable_files"]) == (0 if failed_step == "clone_repository" else 2)


def test_incomplete_checkout_fails_before_tools_run(tmp_path):
    (tmp_path / "supabase-on-do" / "packer").mkdir(parents=True)
    provisioner, _, runner = build_provisioner(tmp_path)

    assert provisioner.run() == 1
    assert runner.calls == []
    assert _manifest(tmp_path)["error"].startswith("Failed to change directory")


def test_dry_run_prints_plan_without_side_effects(tmp_path, capsys):
    provisioner, provider, runner = build_provisioner(tmp_path, dry_run=True)

    assert provisioner.run() == 0
    assert runner.calls == []
    assert "ssh_username" in provider.asked_fields
    assert not (tmp_path / "supabase-on-do").exists()
    assert not (tmp_path / ".supadeploy").exists()
    assert "Provisioning plan" in capsys.readouterr().out


def test_keyboard_interrupt_is_reported_as_failure(tmp_path, monkeypatch):
    provisioner, _, _ = build_provisioner(tmp_path)

    def interrupt():
        raise KeyboardInterrupt

    monkeypatch.setattr(provisioner, "verify_repository", interrupt)

    assert provisioner.run() == 1
    assert _manifest(tmp_path)["status"] == "aborted"


def test_dry_run_prints_bracketed_checkout_name(tmp_path, monkeypatch):
    buffer = io.StringIO()
    monkeypatch.setattr(core_module, "console", Console(file=buffer, width=400, color_system=None))
    provisioner, _, _ = build_provisioner(tmp_path, dry_run=True, repo_dir="supa[/b]base")

    assert provisioner.run() == 0
    assert f"Repository: {tmp_path / 'supa[/b]base'}" in buffer.getvalue()
