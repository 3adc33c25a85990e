"""
WSL guest — runs commands in a distribution through ``wsl.exe``.

Every call is ``wsl.exe -d <name> [-u root] --exec <argv...>``.
``--exec`` skips the distribution's login shell, so arguments reach
the program exactly as given.
"""

from __future__ import annotations

import logging
import shutil

from clip_bridge_setup.core.errors import VirtualizationUnavailable
from clip_bridge_setup.core.models.guest import is_valid_identifier
from clip_bridge_setup.core.services.guest.base import GuestShell
from clip_bridge_setup.core.services.guest.runner import CommandResult, run_command

logger = logging.getLogger(__name__)

_WSL_CANDIDATES = ("wsl.exe", "wsl")


def find_wsl_executable() -> str | None:
    """Path of the WSL launcher on this host, or None."""
    for name in _WSL_CANDIDATES:
        found = shutil.which(name)
        if found:
            return found
    return None


def list_instance_names(wsl_exe: str | None = None) -> list[str]:
    """Enumerate installed distributions (``wsl.exe -l -q``).

    Raises:
        VirtualizationUnavailable: WSL is missing or the listing failed.
    """
    wsl_exe = wsl_exe or find_wsl_executable()
    if not wsl_exe:
        raise VirtualizationUnavailable("wsl.exe was not found on this host.")

    result = run_command([wsl_exe, "-l", "-q"])
    if not result.ok:
        raise VirtualizationUnavailable(
            f"Could not list WSL distributions: {result.describe_failure()}"
        )

    names: list[str] = []
    for line in result.stdout.splitlines():
        name = line.strip().lstrip("\ufeff")
        if name and name not in names:
            names.append(name)
    logger.debug("wsl.exe -l -q → %s", names)
    return names


class WslGuest(GuestShell):
    """A named WSL distribution."""

    def __init__(self, name: str, *, wsl_exe: str | None = None) -> None:
        # Names reach wsl.exe as a single argv element, but keep the
        # same rule as everywhere else.
        if not is_valid_identifier(name):
            raise ValueError(f"invalid instance name: {name!r}")
        super().__init__(name)
        self._wsl_exe = wsl_exe or find_wsl_executable() or "wsl.exe"

    def command_prefix(self, *, as_root: bool = False) -> list[str]:
        prefix = [self._wsl_exe, "-d", self.name]
        if as_root:
            prefix += ["-u", "root"]
        return prefix + ["--exec"]

    def run(
        self,
        argv: list[str],
        *,
        as_root: bool = False,
        input_bytes: bytes | None = None,
    ) -> CommandResult:
        return run_command(
            self.command_prefix(as_root=as_root) + list(argv),
            input_bytes=input_bytes,
        )
