"""
Guest shell protocol — how every service talks to a WSL instance.

Subclasses implement ``run`` only. All higher-level helpers are built
on it with fixed argument vectors, so a value never becomes shell
text. Where a shell is unavoidable (redirection), the script is a
constant and values are passed as positional parameters.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import PureWindowsPath

from clip_bridge_setup.core.errors import ElevationError, GuestCommandError
from clip_bridge_setup.core.services.guest.runner import CommandResult

logger = logging.getLogger(__name__)

# $1 = line, $2 = file
APPEND_LINE_SCRIPT = 'printf "%s\\n" "$1" >> "$2"'

# $1 = destination; content on stdin. Staged then renamed into place,
# owner-only like the files the bridge creates itself.
WRITE_FILE_SCRIPT = 'umask 077 && mkdir -p "$(dirname "$1")" && cat > "$1.tmp" && mv -f "$1.tmp" "$1"'


class GuestShell(ABC):
    """Execution surface of one guest instance."""

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    def run(
        self,
        argv: list[str],
        *,
        as_root: bool = False,
        input_bytes: bytes | None = None,
    ) -> CommandResult:
        """Run ``argv`` inside the guest. Must not raise for non-zero exits."""

    # ── Checked execution ──────────────────────────────────────

    def check(
        self,
        argv: list[str],
        *,
        as_root: bool = False,
        input_bytes: bytes | None = None,
        what: str = "",
    ) -> CommandResult:
        """Run and raise on failure.

        Raises:
            ElevationError: stderr reports a permission problem.
            GuestCommandError: any other non-zero exit.
        """
        result = self.run(argv, as_root=as_root, input_bytes=input_bytes)
        if result.ok:
            return result
        label = what or argv[0]
        stderr = result.stderr.lower()
        if "permission denied" in stderr or "operation not permitted" in stderr:
            raise ElevationError(f"{label}: permission denied in {self.name}")
        raise GuestCommandError(f"{label}: {result.describe_failure()}")

    # ── Environment ────────────────────────────────────────────

    def home(self) -> str:
        home = self.check(["printenv", "HOME"], what="read $HOME").stdout.strip()
        if not home.startswith("/"):
            raise GuestCommandError(f"Unexpected $HOME in {self.name}: {home!r}")
        return home

    def getenv(self, name: str) -> str | None:
        """Value of ``name`` as a non-login guest process sees it, or None."""
        result = self.run(["printenv", name])
        value = result.stdout.strip() if result.ok else ""
        return value or None

    def machine(self) -> str:
        """Raw ``uname -m`` of the guest kernel."""
        return self.check(["uname", "-m"], what="detect architecture").stdout.strip()

    def to_guest_path(self, host_path: str | PureWindowsPath) -> str:
        """Translate a host (Windows) path into the guest namespace."""
        result = self.check(["wslpath", "-u", str(host_path)], what="translate path")
        return result.stdout.strip()

    # ── Files ──────────────────────────────────────────────────

    def file_exists(self, path: str) -> bool:
        return self.run(["test", "-f", path]).ok

    def read_text(self, path: str) -> str | None:
        """File content, or None when the file does not exist."""
        if not self.file_exists(path):
            return None
        return self.check(["cat", path], what=f"read {path}").stdout

    def append_line(self, path: str, line: str) -> None:
        self.check(["sh", "-c", APPEND_LINE_SCRIPT, "sh", line, path], what=f"append to {path}")

    def write_text(self, path: str, text: str) -> None:
        """Replace ``path`` with ``text`` (UTF-8, no BOM), creating parents."""
        self.check(
            ["sh", "-c", WRITE_FILE_SCRIPT, "sh", path],
            input_bytes=text.encode("utf-8"),
            what=f"write {path}",
        )
        logger.debug("Wrote %d bytes to %s:%s", len(text), self.name, path)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
