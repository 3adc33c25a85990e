"""
Tests for the install orchestrator — stage sequencing and halting.

WSL listing, downloads and psutil are patched; the guest is a FakeGuest.
"""

import hashlib
import io
import tomllib
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from clip_bridge_setup.core.config.loader import InstallerConfig
from clip_bridge_setup.core.errors import NoInstances
from clip_bridge_setup.core.use_cases.install import (
    InstallOptions,
    Prompter,
    SettingsAnswers,
    decide_settings,
    run_install,
)

BINARY = b"\x7fELF fake binary"
DIGEST = hashlib.sha256(BINARY).hexdigest()
APP_CONFIG = "/home/dev/.config/wsl-clip-bridge/config.toml"

_LIST = "clip_bridge_setup.core.services.probe.list_instance_names"
_OPEN = "clip_bridge_setup.core.services.artifact.download._open"
_MKDTEMP = "clip_bridge_setup.core.services.artifact.installer.tempfile.mkdtemp"
_FIND = "clip_bridge_setup.core.services.companion.process_gate.find_companion_processes"


def _serve(sidecar=None):
    def fake_open(url):
        if url.endswith(".sha256"):
            if sidecar is None:
                raise urllib.error.HTTPError(url, 404, "Not Found", hdrs=None, fp=None)
            return io.BytesIO(sidecar)
        return io.BytesIO(BINARY)

    return fake_open


@pytest.fixture
def work_dir(tmp_path):
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def env(work_dir):
    """One Ubuntu instance, release served without a checksum, ShareX closed."""
    with patch(_LIST, return_value=["Ubuntu"]), \
         patch(_OPEN, side_effect=_serve()), \
         patch(_MKDTEMP, return_value=str(work_dir)), \
         patch(_FIND, return_value=[]):
        yield


def _stage_statuses(result):
    return {s.name: s.status for s in result.stages}


class TestDecideSettings:
    def test_defaults(self):
        s = decide_settings(SettingsAnswers())
        assert (s.ttl_secs, s.max_image_dimension, s.restrict_to_home) == (300, 1568, True)
        assert s.allowed_directories == []

    def test_answers_carried(self):
        s = decide_settings(SettingsAnswers(ttl_secs=60, max_image_dimension=0, restrict_to_home=False))
        assert (s.ttl_secs, s.max_image_dimension, s.restrict_to_home) == (60, 0, False)


class TestInstallOptions:
    def test_from_config_with_overrides(self):
        config = InstallerConfig(distro="Debian", ttl_secs=42, target="system")
        options = InstallOptions.from_config(config, distro=None, target="user", assume_yes=True)
        assert options.distro == "Debian"
        assert options.target == "user"
        assert options.assume_yes
        assert options.settings.ttl_secs == 42


class TestRunInstall:
    def test_zero_instances_halts_before_any_write(self, guest):
        """Scenario A."""
        with patch(_LIST, return_value=[]):
            result = run_install(InstallOptions(assume_yes=True), guest_factory=lambda n: guest)

        assert not result.ok
        assert result.failed_stage == "probe"
        assert result.hint == NoInstances.default_hint
        assert guest.calls == []

    def test_unattended_single_instance(self, guest, env):
        """Scenario B: one instance, --yes, no checksum published."""
        options = InstallOptions(assume_yes=True, skip_companion=True)
        result = run_install(options, guest_factory=lambda n: guest)

        assert result.ok, result.error
        assert result.instance == "Ubuntu"
        assert result.arch == "amd64"
        assert not result.artifact.verified
        assert guest.local("/home/dev/.local/bin/xclip").read_bytes() == BINARY

        data = tomllib.loads(guest.read(APP_CONFIG))
        assert data["ttl_secs"] == 300
        assert data["max_image_dimension"] == 1568
        assert data["restrict_to_home"] is True

        assert _stage_statuses(result) == {
            "probe": "ok",
            "select": "ok",
            "architecture": "ok",
            "settings": "ok",
            "artifact": "ok",
            "shell-profile": "ok",
            "app-config": "ok",
            "sharex": "skipped",
        }

    def test_checksum_mismatch_halts_at_artifact(self, guest, work_dir):
        with patch(_LIST, return_value=["Ubuntu"]), \
             patch(_OPEN, side_effect=_serve(("0" * 64).encode())), \
             patch(_MKDTEMP, return_value=str(work_dir)):
            result = run_install(InstallOptions(assume_yes=True), guest_factory=lambda n: guest)

        assert result.failed_stage == "artifact"
        assert not work_dir.exists()
        assert not guest.local("/home/dev/.local/bin").exists()
        assert not guest.local(APP_CONFIG).exists()

    def test_system_target_skips_profile(self, guest, env):
        result = run_install(
            InstallOptions(assume_yes=True, skip_companion=True, target="system"),
            guest_factory=lambda n: guest,
        )
        assert result.ok, result.error
        assert result.artifact.path == "/usr/local/bin/xclip"
        assert _stage_statuses(result)["shell-profile"] == "skipped"
        assert "$HOME/.local/bin" not in guest.read("/home/dev/.bashrc")

    def test_full_run_with_sharex(self, guest, env, sharex_dir, tmp_path):
        options = InstallOptions(
            assume_yes=True,
            sharex_config=sharex_dir,
            script_path=tmp_path / "sharex-to-wsl.cmd",
            settle_seconds=0,
        )
        result = run_install(options, guest_factory=lambda n: guest)

        assert result.ok, result.error
        assert result.companion.action_status == "added"
        data = tomllib.loads(guest.read(APP_CONFIG))
        assert "/tmp" in data["allowed_directories"]
        assert result.to_dict()["companion"]["script_path"] == str(tmp_path / "sharex-to-wsl.cmd")

    def test_several_instances_unattended_is_ambiguous(self, guest):
        with patch(_LIST, return_value=["Debian", "Ubuntu"]):
            result = run_install(InstallOptions(assume_yes=True), guest_factory=lambda n: guest)
        assert result.failed_stage == "select"
        assert "--distro" in result.hint

    def test_interactive_prompter_is_consulted(self, make_guest, env):
        class Answers(Prompter):
            interactive = True

            def choose_instance(self, candidates, default_index):
                return candidates[default_index]

            def ask_settings(self, defaults):
                return SettingsAnswers(ttl_secs=900, max_image_dimension=0)

            def confirm_companion(self):
                return False

        guests = {}

        def factory(name):
            guests[name] = make_guest(name)
            return guests[name]

        with patch(_LIST, return_value=["Debian", "Ubuntu-2404"]):
            result = run_install(InstallOptions(), Answers(), guest_factory=factory)

        assert result.ok, result.error
        assert result.instance == "Ubuntu-2404"
        data = tomllib.loads(guests["Ubuntu-2404"].read(APP_CONFIG))
        assert (data["ttl_secs"], data["max_image_dimension"]) == (900, 0)
        assert _stage_statuses(result)["sharex"] == "skipped"

    def test_declined_sharex_close_fails_stage(self, guest, sharex_dir, work_dir, tmp_path):
        """Scenario D through the orchestrator: failure is reported, JSON untouched."""

        class Decline(Prompter):
            def confirm_close_companion(self, count):
                return False

        json_path = sharex_dir / "ApplicationConfig.json"
        before = json_path.read_bytes()
        running = MagicMock(pid=7)
        with patch(_LIST, return_value=["Ubuntu"]), \
             patch(_OPEN, side_effect=_serve()), \
             patch(_MKDTEMP, return_value=str(work_dir)), \
             patch(_FIND, return_value=[running]):
            result = run_install(
                InstallOptions(sharex_config=sharex_dir, script_path=tmp_path / "s.cmd"),
                Decline(),
                guest_factory=lambda n: guest,
            )

        assert result.failed_stage == "sharex"
        assert json_path.read_bytes() == before
        assert not list(sharex_dir.glob("*.bak.*"))
        assert result.to_dict()["ok"] is False
