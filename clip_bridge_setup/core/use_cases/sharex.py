"""
ShareX use cases — re-run only the ShareX wiring against an existing
install, or render the companion script on its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from clip_bridge_setup.core.errors import ConfigIOError, InstallerError
from clip_bridge_setup.core.models.guest import INSTALL_TARGETS
from clip_bridge_setup.core.services.app_config import resolve_config_path
from clip_bridge_setup.core.services.artifact.installer import BINARY_NAME
from clip_bridge_setup.core.services.companion.integrate import (
    CompanionReport,
    integrate_companion,
)
from clip_bridge_setup.core.services.companion.script import render_companion_script
from clip_bridge_setup.core.services.guest.base import GuestShell
from clip_bridge_setup.core.services.guest.wsl import WslGuest
from clip_bridge_setup.core.services.probe import probe
from clip_bridge_setup.core.services.selection import select_instance
from clip_bridge_setup.core.use_cases.install import (
    AutoPrompter,
    GuestFactory,
    InstallOptions,
    Prompter,
)

logger = logging.getLogger(__name__)


def find_installed_binary(guest: GuestShell) -> str | None:
    """Guest path of an installed bridge binary, user install first."""
    home = guest.home()
    for target in INSTALL_TARGETS.values():
        candidate = f"{target.resolve(home)}/{BINARY_NAME}"
        if guest.file_exists(candidate):
            return candidate
    return None


@dataclass
class ShareXResult:
    instance: str | None = None
    binary_path: str | None = None
    companion: CompanionReport | None = None
    script: str | None = None
    error: str | None = None
    hint: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result: dict = {"ok": self.ok}
        if self.error:
            result["error"] = self.error
            result["hint"] = self.hint
            return result
        result["instance"] = self.instance
        result["binary_path"] = self.binary_path
        if self.companion:
            result["companion"] = self.companion.to_dict()
        return result


def _resolve_guest(
    options: InstallOptions,
    prompter: Prompter,
    guest_factory: GuestFactory | None,
) -> tuple[GuestShell, str]:
    found = probe(options.wsl_exe)
    name = select_instance(
        found.instances,
        explicit=options.distro,
        interactive=prompter.interactive,
        choose=prompter.choose_instance,
    )
    if guest_factory is None:
        return WslGuest(name, wsl_exe=options.wsl_exe), name
    return guest_factory(name), name


def _require_binary(guest: GuestShell) -> str:
    binary = find_installed_binary(guest)
    if binary is None:
        raise ConfigIOError(
            f"The bridge is not installed in {guest.name}.",
            hint="Run 'clip-bridge-setup install' first.",
        )
    return binary


def run_sharex_configure(
    options: InstallOptions,
    prompter: Prompter | None = None,
    guest_factory: GuestFactory | None = None,
) -> ShareXResult:
    """Wire ShareX to an already installed bridge.

    Settings of the existing config.toml are kept; only
    ``allowed_directories`` is extended.
    """
    if prompter is None or options.assume_yes:
        prompter = AutoPrompter()
    result = ShareXResult()

    try:
        guest, result.instance = _resolve_guest(options, prompter, guest_factory)
        result.binary_path = _require_binary(guest)
        app_config = resolve_config_path(guest)
        if not guest.file_exists(app_config):
            raise ConfigIOError(
                f"Bridge config not found in {guest.name}: {app_config}",
                hint="Run 'clip-bridge-setup install' to create it.",
            )
        result.companion = integrate_companion(
            guest,
            binary_path=result.binary_path,
            app_config_path=app_config,
            confirm_close=prompter.confirm_close_companion,
            config_path=options.sharex_config,
            ask_path=prompter.ask_companion_config,
            script_path=options.script_path,
            settle_seconds=options.settle_seconds,
            restrict_to_home=options.settings.restrict_to_home,
        )
    except InstallerError as e:
        result.error = str(e)
        result.hint = e.hint

    return result


def run_sharex_script(
    options: InstallOptions,
    prompter: Prompter | None = None,
    guest_factory: GuestFactory | None = None,
) -> ShareXResult:
    """Render the companion script for the chosen instance without writing it."""
    if prompter is None or options.assume_yes:
        prompter = AutoPrompter()
    result = ShareXResult()

    try:
        guest, result.instance = _resolve_guest(options, prompter, guest_factory)
        result.binary_path = _require_binary(guest)
        result.script = render_companion_script(result.instance, result.binary_path)
    except InstallerError as e:
        result.error = str(e)
        result.hint = e.hint

    return result
