"""
Shared test fixtures and configuration.

``FakeGuest`` stands in for a WSL distribution: the guest filesystem
lives under a temp directory and the handful of commands the services
issue are emulated there. Host paths translate to ``/mnt/host/<path>``.
"""

from __future__ import annotations

import json
import os
import shutil
from pathlib import Path

import pytest

from clip_bridge_setup.core.services.guest.base import (
    APPEND_LINE_SCRIPT,
    WRITE_FILE_SCRIPT,
    GuestShell,
)
from clip_bridge_setup.core.services.guest.runner import CommandResult

HOST_MOUNT = "/mnt/host"


class FakeGuest(GuestShell):
    """Filesystem-backed guest; records every command it is given."""

    def __init__(
        self,
        root: Path,
        name: str = "Ubuntu",
        *,
        home: str = "/home/dev",
        machine: str = "x86_64",
        protected: tuple[str, ...] = ("/usr/local/bin",),
    ) -> None:
        super().__init__(name)
        self.root = root
        self.home_dir = home
        self.machine_name = machine
        self.protected = protected
        self.calls: list[tuple[list[str], bool]] = []
        self.fail_on: dict[str, str] = {}
        self.env: dict[str, str] = {}
        self.local(home).mkdir(parents=True, exist_ok=True)

    # ── Helpers for tests ──────────────────────────────────────

    def local(self, guest_path: str) -> Path:
        if guest_path.startswith(HOST_MOUNT + "/"):
            return Path(guest_path[len(HOST_MOUNT):])
        return self.root / guest_path.lstrip("/")

    def write(self, guest_path: str, text: str) -> Path:
        path = self.local(guest_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(text.encode("utf-8"))
        return path

    def read(self, guest_path: str) -> str:
        return self.local(guest_path).read_bytes().decode("utf-8")

    def commands(self) -> list[str]:
        return [argv[0] for argv, _ in self.calls]

    # ── GuestShell ─────────────────────────────────────────────

    def run(self, argv, *, as_root=False, input_bytes=None) -> CommandResult:
        argv = list(argv)
        self.calls.append((argv, as_root))
        cmd, args = argv[0], argv[1:]

        if cmd in self.fail_on:
            return CommandResult(argv, 1, stderr=self.fail_on[cmd])

        writes = {"mkdir": args[-1:], "cp": args[-1:], "mv": args[-1:], "chmod": args[-1:]}
        for target in writes.get(cmd, []):
            if not as_root and any(target.startswith(p) for p in self.protected):
                return CommandResult(argv, 1, stderr=f"{cmd}: {target}: Permission denied")

        if cmd == "printenv":
            value = self.home_dir if args[0] == "HOME" else self.env.get(args[0])
            if value is None:
                return CommandResult(argv, 1)
            return CommandResult(argv, 0, stdout=value + "\n")
        if cmd == "uname":
            return CommandResult(argv, 0, stdout=self.machine_name + "\n")
        if cmd == "wslpath":
            return CommandResult(argv, 0, stdout=HOST_MOUNT + Path(args[-1]).as_posix() + "\n")
        if cmd == "test":
            return CommandResult(argv, 0 if self.local(args[-1]).is_file() else 1)
        if cmd == "cat":
            path = self.local(args[0])
            if not path.is_file():
                return CommandResult(argv, 1, stderr=f"cat: {args[0]}: No such file or directory")
            return CommandResult(argv, 0, stdout=path.read_bytes().decode("utf-8"))
        if cmd == "mkdir":
            self.local(args[-1]).mkdir(parents=True, exist_ok=True)
            return CommandResult(argv, 0)
        if cmd == "cp":
            shutil.copyfile(self.local(args[-2]), self.local(args[-1]))
            return CommandResult(argv, 0)
        if cmd == "chmod":
            os.chmod(self.local(args[-1]), int(args[0], 8))
            return CommandResult(argv, 0)
        if cmd == "mv":
            os.replace(self.local(args[-2]), self.local(args[-1]))
            return CommandResult(argv, 0)
        if cmd == "rm":
            self.local(args[-1]).unlink(missing_ok=True)
            return CommandResult(argv, 0)
        if cmd == "sh" and args[1] == APPEND_LINE_SCRIPT:
            line, path = args[3], args[4]
            with open(self.local(path), "ab") as f:
                f.write((line + "\n").encode("utf-8"))
            return CommandResult(argv, 0)
        if cmd == "sh" and args[1] == WRITE_FILE_SCRIPT:
            os.chmod(self.write(args[3], (input_bytes or b"").decode("utf-8")), 0o600)
            return CommandResult(argv, 0)

        return CommandResult(argv, 127, stderr=f"{cmd}: not emulated")


# ── Fixtures ────────────────────────────────────────────────────


@pytest.fixture
def guest(tmp_path: Path) -> FakeGuest:
    """An Ubuntu guest with $HOME=/home/dev and a .bashrc."""
    g = FakeGuest(tmp_path / "guest")
    g.write("/home/dev/.bashrc", "# ~/.bashrc\nalias ll='ls -l'\n")
    return g


@pytest.fixture
def sharex_dir(tmp_path: Path) -> Path:
    """A ShareX personal folder holding a realistic ApplicationConfig.json."""
    folder = tmp_path / "Documents" / "ShareX"
    folder.mkdir(parents=True)
    (folder / "ApplicationConfig.json").write_text(
        json.dumps(_sharex_document(), indent=2), encoding="utf-8",
    )
    return folder


def _sharex_document() -> dict:
    """A trimmed ShareX settings document with fields we do not model."""
    return {
        "DefaultTaskSettings": {
            "Description": "",
            "Job": "None",
            "UseDefaultAfterCaptureJob": True,
            "AfterCaptureJob": "CopyImageToClipboard, SaveImageToFile",
            "UseDefaultAfterUploadJob": True,
            "ExternalPrograms": [
                {
                    "IsActive": False,
                    "Name": "Paint",
                    "Path": "mspaint.exe",
                    "Args": '"%input"',
                    "OutputExtension": "",
                    "Extensions": "",
                    "HiddenWindow": False,
                    "DeleteInputFile": False,
                },
            ],
            "CaptureSettings": {"ShowCursor": True, "ScreenshotDelay": 0.0},
        },
        "FirstTimeRunDate": "2024-01-01T00:00:00",
        "UseCustomScreenshotsPath": False,
        "CustomScreenshotsPath": "",
        "SaveImageSubFolderPattern": "%y-%mo",
        "ApplicationConfigBackupVersion": "16.1.0",
    }


@pytest.fixture
def make_guest(tmp_path: Path):
    """Factory for extra guests (other names, homes or CPUs)."""

    def factory(name: str = "Ubuntu", **kwargs) -> FakeGuest:
        return FakeGuest(tmp_path / f"guest-{name}", name, **kwargs)

    return factory
