"""
Guest models — the WSL instance being provisioned and where the
binary lands inside it.
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

# Instance names are interpolated into the generated companion script,
# so they are restricted before any use.
IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_NON_IDENTIFIER_CHARS = re.compile(r"[^A-Za-z0-9_-]")

Architecture = Literal["amd64", "arm64"]


def is_valid_identifier(value: str) -> bool:
    """True if ``value`` is non-empty and only uses ``[A-Za-z0-9_-]``."""
    return bool(IDENTIFIER_RE.fullmatch(value or ""))


def sanitize_identifier(value: str) -> str:
    """Strip every character outside the identifier grammar."""
    return _NON_IDENTIFIER_CHARS.sub("", value or "")


class GuestInstance(BaseModel):
    """A WSL distribution addressable by name from the host."""

    model_config = ConfigDict(frozen=True)

    name: str
    architecture: Architecture

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not is_valid_identifier(value):
            raise ValueError(f"invalid instance name: {value!r}")
        return value


class InstallTarget(BaseModel):
    """Where the binary is installed inside the guest.

    ``base_path`` may start with ``$HOME``; it is expanded against the
    guest's home directory at install time.
    """

    model_config = ConfigDict(frozen=True)

    key: Literal["user", "system"]
    base_path: str
    requires_elevation: bool
    copy_verb: tuple[str, ...]
    dir_init_verb: tuple[str, ...]

    def resolve(self, guest_home: str) -> str:
        """Absolute guest directory for this target."""
        if self.base_path.startswith("$HOME"):
            return guest_home.rstrip("/") + self.base_path[len("$HOME"):]
        return self.base_path


USER_TARGET = InstallTarget(
    key="user",
    base_path="$HOME/.local/bin",
    requires_elevation=False,
    copy_verb=("cp", "-f"),
    dir_init_verb=("mkdir", "-p"),
)

SYSTEM_TARGET = InstallTarget(
    key="system",
    base_path="/usr/local/bin",
    requires_elevation=True,
    copy_verb=("cp", "-f"),
    dir_init_verb=("mkdir", "-p"),
)

INSTALL_TARGETS: dict[str, InstallTarget] = {
    USER_TARGET.key: USER_TARGET,
    SYSTEM_TARGET.key: SYSTEM_TARGET,
}
