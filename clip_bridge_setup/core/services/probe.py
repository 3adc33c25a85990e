"""
Environment prober — which WSL instances exist and which binary fits.

Read-only: lists distributions and reads ``uname -m``; never writes.
"""

from __future__ import annotations

import logging
import platform
from dataclasses import dataclass, field

from clip_bridge_setup.core.errors import HostEnvironmentError, NoInstances
from clip_bridge_setup.core.services.guest.base import GuestShell
from clip_bridge_setup.core.services.guest.wsl import list_instance_names

logger = logging.getLogger(__name__)

# Machine names as reported by Windows (platform.machine) and Linux (uname -m)
_ARCH_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv8l": "arm64",
}

SUPPORTED_ARCHES = ("amd64", "arm64")

# Backing distributions of Docker Desktop, not user environments
_UTILITY_INSTANCES = frozenset({"docker-desktop", "docker-desktop-data"})


def normalize_arch(machine: str) -> str | None:
    """Map a raw machine string to ``amd64``/``arm64``, or None."""
    return _ARCH_MAP.get((machine or "").strip().lower())


def resolve_architecture(host_arch: str | None, guest_arch: str | None) -> str:
    """Pick the architecture of the binary to install.

    The binary runs inside the guest, so the guest wins on mismatch.

    Raises:
        HostEnvironmentError: neither side reports a supported arch.
    """
    if guest_arch and host_arch and guest_arch != host_arch:
        logger.warning(
            "Host reports %s but the guest reports %s; using %s",
            host_arch, guest_arch, guest_arch,
        )
    arch = guest_arch or host_arch
    if arch not in SUPPORTED_ARCHES:
        raise HostEnvironmentError(
            f"Unsupported CPU architecture (host={host_arch!r}, guest={guest_arch!r})."
        )
    return arch


def detect_host_arch() -> str | None:
    arch = normalize_arch(platform.machine())
    logger.debug("Host machine %r → %s", platform.machine(), arch)
    return arch


def detect_guest_arch(guest: GuestShell) -> str | None:
    machine = guest.machine()
    arch = normalize_arch(machine)
    logger.debug("Guest %s machine %r → %s", guest.name, machine, arch)
    return arch


@dataclass
class ProbeResult:
    """What the host offers: candidate instances and CPU architectures."""

    instances: list[str] = field(default_factory=list)
    host_arch: str | None = None
    guest_arch: str | None = None
    skipped: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "instances": list(self.instances),
            "skipped": list(self.skipped),
            "host_arch": self.host_arch,
            "guest_arch": self.guest_arch,
        }


def probe(wsl_exe: str | None = None) -> ProbeResult:
    """Enumerate candidate instances and the host architecture.

    ``guest_arch`` is filled later, by ``probe_guest``, once an instance
    is chosen: reading it requires booting that distribution.

    Raises:
        VirtualizationUnavailable: WSL missing or not answering.
        NoInstances: no usable distribution is installed.
    """
    names = list_instance_names(wsl_exe)
    result = ProbeResult(host_arch=detect_host_arch())
    for name in names:
        if name.lower() in _UTILITY_INSTANCES:
            result.skipped.append(name)
        else:
            result.instances.append(name)

    if not result.instances:
        raise NoInstances("No WSL distributions are installed.")

    logger.info("Found %d WSL instance(s): %s", len(result.instances), ", ".join(result.instances))
    return result


def probe_guest(result: ProbeResult, guest: GuestShell) -> str:
    """Read the guest architecture into ``result`` and return the binary arch."""
    result.guest_arch = detect_guest_arch(guest)
    return resolve_architecture(result.host_arch, result.guest_arch)
