"""
Shell-profile patcher — put the install directory on the guest PATH.

Only start-up files that already exist are touched; a missing file is
never created. Writes are idempotent: a file that already contains the
export line is left alone, and the line itself checks ``$PATH`` before
prepending, so re-sourcing a profile never duplicates the entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from clip_bridge_setup.core.services.guest.base import GuestShell

logger = logging.getLogger(__name__)

# Checked in this order, relative to the guest $HOME
PROFILE_FILES: tuple[str, ...] = (".bashrc", ".zshrc", ".profile")


@dataclass
class PatchReport:
    directory: str
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    @property
    def found_any(self) -> bool:
        return bool(self.updated or self.unchanged)

    def to_dict(self) -> dict:
        return {
            "directory": self.directory,
            "updated": list(self.updated),
            "unchanged": list(self.unchanged),
            "missing": list(self.missing),
        }


def path_export_line(directory: str, home: str) -> str:
    """POSIX line that prepends ``directory`` to PATH unless present.

    Directories under ``home`` are written relative to ``$HOME``.
    """
    home = home.rstrip("/")
    if directory == home or directory.startswith(home + "/"):
        directory = "$HOME" + directory[len(home):]
    return f'case ":$PATH:" in *":{directory}:"*) ;; *) export PATH="{directory}:$PATH" ;; esac'


def has_line(content: str, line: str) -> bool:
    """True if ``line`` appears as a whole line of ``content``."""
    target = line.strip()
    return any(existing.strip() == target for existing in content.splitlines())


def ensure_path(guest: GuestShell, directory: str) -> PatchReport:
    """Append the PATH export for ``directory`` to each existing profile.

    A missing profile, or none at all, is a warning rather than an error.
    """
    home = guest.home()
    line = path_export_line(directory, home)
    report = PatchReport(directory=directory)

    for name in PROFILE_FILES:
        path = f"{home}/{name}"
        content = guest.read_text(path)
        if content is None:
            report.missing.append(path)
            continue
        if has_line(content, line):
            logger.debug("%s already exports %s", path, directory)
            report.unchanged.append(path)
            continue
        if content and not content.endswith("\n"):
            guest.append_line(path, "")
        guest.append_line(path, line)
        logger.info("Added %s to PATH in %s", directory, path)
        report.updated.append(path)

    if not report.found_any:
        logger.warning(
            "No shell start-up file found (%s); add %s to PATH manually.",
            ", ".join(PROFILE_FILES), directory,
        )
    return report
