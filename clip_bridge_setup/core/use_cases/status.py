"""
Status use case — what the host offers before anything is installed.
"""

from __future__ import annotations

from dataclasses import dataclass

from clip_bridge_setup.core.errors import InstallerError
from clip_bridge_setup.core.services.guest.wsl import WslGuest
from clip_bridge_setup.core.services.probe import ProbeResult, probe, probe_guest
from clip_bridge_setup.core.services.selection import validate_instance_name


@dataclass
class StatusResult:
    """WSL instances and CPU architectures seen from the host."""

    probe: ProbeResult | None = None
    distro: str | None = None
    arch: str | None = None
    error: str | None = None
    hint: str | None = None

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            result["hint"] = self.hint
            return result

        if self.probe:
            result.update(self.probe.to_dict())
        if self.distro:
            result["distro"] = self.distro
            result["arch"] = self.arch
        return result


def get_status(distro: str | None = None, wsl_exe: str | None = None) -> StatusResult:
    """List instances; with ``distro``, also read its architecture.

    Reading a guest's architecture starts that distribution, so it is
    only done on request.
    """
    result = StatusResult()
    try:
        result.probe = probe(wsl_exe)
        if distro:
            result.distro = validate_instance_name(distro)
            result.arch = probe_guest(result.probe, WslGuest(distro, wsl_exe=wsl_exe))
    except InstallerError as e:
        result.error = str(e)
        result.hint = e.hint
    return result
