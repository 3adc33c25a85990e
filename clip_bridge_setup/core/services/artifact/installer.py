"""
Artifact installer — download on the host, install inside the guest.

Steps:
    1. download into a run-scoped temp directory
    2. verify the published checksum (if any) — before any guest work
    3. translate the temp path into the guest namespace
    4. create the destination directory
    5. copy to a staging name beside the destination
    6. chmod, then rename onto the final name

Only the last rename touches the installed binary, so a failure at any
earlier step leaves a previous install (or nothing) in place. The temp
directory is removed on every path.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from clip_bridge_setup.core.errors import InstallerError
from clip_bridge_setup.core.models.guest import InstallTarget
from clip_bridge_setup.core.services.artifact.download import download_release
from clip_bridge_setup.core.services.guest.base import GuestShell

logger = logging.getLogger(__name__)

BINARY_NAME = "xclip"
TEMP_PREFIX = "wsl-clip-bridge-"


@dataclass
class InstalledArtifact:
    """Where the binary landed and how it was checked."""

    path: str
    directory: str
    url: str
    checksum: str
    verified: bool

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "directory": self.directory,
            "url": self.url,
            "sha256": self.checksum,
            "verified": self.verified,
        }


def install_artifact(
    guest: GuestShell,
    target: InstallTarget,
    release_url: str,
) -> InstalledArtifact:
    """Download ``release_url`` and install it into ``guest`` at ``target``.

    Raises:
        DownloadError, IntegrityError: before the guest is touched.
        ElevationError, GuestCommandError: a guest step failed.
    """
    work_dir = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))
    try:
        artifact = download_release(release_url, work_dir)
        path, directory = place_binary(guest, target, artifact.local_temp_path)
    finally:
        shutil.rmtree(work_dir, ignore_errors=True)
        logger.debug("Removed temp directory %s", work_dir)

    return InstalledArtifact(
        path=path,
        directory=directory,
        url=artifact.url,
        checksum=artifact.actual_checksum,
        verified=artifact.verified,
    )


def place_binary(
    guest: GuestShell,
    target: InstallTarget,
    host_path: Path,
) -> tuple[str, str]:
    """Copy a host file into the guest as the bridge binary.

    Returns:
        ``(installed_path, install_directory)`` inside the guest.
    """
    source = guest.to_guest_path(host_path)
    directory = target.resolve(guest.home())
    dest = f"{directory}/{BINARY_NAME}"
    staged = f"{dest}.new"
    as_root = target.requires_elevation

    guest.check([*target.dir_init_verb, directory], as_root=as_root, what=f"create {directory}")
    try:
        guest.check([*target.copy_verb, source, staged], as_root=as_root, what=f"copy to {staged}")
        guest.check(["chmod", "0755", staged], as_root=as_root, what=f"chmod {staged}")
        guest.check(["mv", "-f", staged, dest], as_root=as_root, what=f"install {dest}")
    except InstallerError:
        guest.run(["rm", "-f", staged], as_root=as_root)
        raise

    logger.info("Installed %s into %s:%s", BINARY_NAME, guest.name, dest)
    return dest, directory
