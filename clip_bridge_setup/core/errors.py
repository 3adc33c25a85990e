"""
Installer error taxonomy.

Every fatal condition raised by a service is an ``InstallerError``.
Each carries a one-line remediation ``hint`` that the CLI prints
under the cause. The orchestrator catches these at stage boundaries;
anything else is a bug and propagates.
"""

from __future__ import annotations


class InstallerError(Exception):
    """Base class for fatal installer conditions."""

    default_hint = ""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint if hint is not None else self.default_hint

    def to_dict(self) -> dict:
        return {
            "type": type(self).__name__,
            "error": str(self),
            "hint": self.hint,
        }


class HostEnvironmentError(InstallerError):
    """Host or guest environment cannot run the bridge (e.g. unsupported CPU)."""

    default_hint = "The bridge ships amd64 and arm64 builds only."


class DiscoveryError(InstallerError):
    """No usable WSL instance could be found or chosen."""

    default_hint = "Run 'wsl.exe -l -v' to list your distributions."


class VirtualizationUnavailable(DiscoveryError):
    default_hint = "Install WSL with 'wsl.exe --install' and reboot, then re-run setup."


class NoInstances(DiscoveryError):
    default_hint = "Install a distribution, e.g. 'wsl.exe --install -d Ubuntu', then re-run setup."


class AmbiguousInstance(DiscoveryError):
    default_hint = "Several distributions exist; pass --distro NAME to pick one."


class InvalidIdentifierError(InstallerError):
    """Instance name contains characters outside ``[A-Za-z0-9_-]``."""

    default_hint = (
        "Distribution names may only contain letters, digits, '_' and '-'. "
        "Re-register a name such as 'Ubuntu-24.04' under one without '.' "
        "(wsl.exe --export, then wsl.exe --import)."
    )


class DownloadError(InstallerError):
    default_hint = "Check your network connection and the release URL, then re-run setup."


class IntegrityError(InstallerError):
    """Downloaded artifact does not match its published checksum."""

    default_hint = (
        "The download may be corrupted or tampered with. "
        "Re-run setup; if it persists, report it to the project."
    )


class ElevationError(InstallerError):
    """A guest-side step failed for lack of permissions."""

    default_hint = "Re-run without --system to install into ~/.local/bin instead."


class ConfigIOError(InstallerError):
    """A configuration file could not be read, parsed or written."""

    default_hint = "Check the file exists, is valid, and is not locked by another program."


class ConfigNotFound(ConfigIOError):
    default_hint = (
        "Start ShareX once so it creates its settings, "
        "or pass the path to ApplicationConfig.json."
    )


class CompanionStateError(InstallerError):
    """ShareX is running and may overwrite its settings on exit."""

    default_hint = "Close ShareX (including the tray icon) and re-run setup."


class GuestCommandError(InstallerError):
    """A command inside the guest failed for a reason other than permissions."""

    default_hint = "Check that the distribution starts with 'wsl.exe -d <name>', then re-run setup."
