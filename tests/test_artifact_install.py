"""
Tests for installing the downloaded binary into the guest.

Downloads are served by a patched ``_open``; the guest is a FakeGuest.
"""

import hashlib
import io
import stat
import urllib.error
from unittest.mock import patch

import pytest

from clip_bridge_setup.core.errors import ElevationError, GuestCommandError, IntegrityError
from clip_bridge_setup.core.models.guest import SYSTEM_TARGET, USER_TARGET
from clip_bridge_setup.core.services.artifact.installer import install_artifact, place_binary

URL = "https://github.com/camjac251/wsl-clip-bridge/releases/latest/download/xclip-amd64"
BINARY = b"\x7fELF fake binary"
DIGEST = hashlib.sha256(BINARY).hexdigest()

_OPEN = "clip_bridge_setup.core.services.artifact.download._open"
_MKDTEMP = "clip_bridge_setup.core.services.artifact.installer.tempfile.mkdtemp"


def _serve(sidecar):
    def fake_open(url):
        body = BINARY if url == URL else sidecar
        if isinstance(body, Exception):
            raise body
        return io.BytesIO(body)

    return fake_open


@pytest.fixture
def work_dir(tmp_path):
    path = tmp_path / "work"
    path.mkdir()
    return path


class TestInstallArtifact:
    def test_user_install(self, guest, work_dir):
        with patch(_OPEN, side_effect=_serve(DIGEST.encode())), \
             patch(_MKDTEMP, return_value=str(work_dir)):
            installed = install_artifact(guest, USER_TARGET, URL)

        assert installed.path == "/home/dev/.local/bin/xclip"
        assert installed.verified
        binary = guest.local(installed.path)
        assert binary.read_bytes() == BINARY
        assert binary.stat().st_mode & stat.S_IXUSR
        assert not guest.local(installed.path + ".new").exists()
        assert not work_dir.exists()

    def test_no_sidecar_still_installs(self, guest, work_dir):
        missing = urllib.error.HTTPError(URL, 404, "Not Found", hdrs=None, fp=None)
        with patch(_OPEN, side_effect=_serve(missing)), \
             patch(_MKDTEMP, return_value=str(work_dir)):
            installed = install_artifact(guest, USER_TARGET, URL)
        assert not installed.verified
        assert installed.to_dict()["sha256"] == DIGEST

    def test_checksum_mismatch_stops_before_guest(self, guest, work_dir):
        """Mismatch: no guest command runs and the temp directory is gone."""
        with patch(_OPEN, side_effect=_serve(("0" * 64).encode())), \
             patch(_MKDTEMP, return_value=str(work_dir)):
            with pytest.raises(IntegrityError):
                install_artifact(guest, USER_TARGET, URL)

        assert guest.calls == []
        assert not work_dir.exists()
        assert not guest.local("/home/dev/.local/bin/xclip").exists()

    def test_system_install_runs_as_root(self, guest, work_dir):
        with patch(_OPEN, side_effect=_serve(DIGEST.encode())), \
             patch(_MKDTEMP, return_value=str(work_dir)):
            installed = install_artifact(guest, SYSTEM_TARGET, URL)

        assert installed.path == "/usr/local/bin/xclip"
        writes = [(argv[0], root) for argv, root in guest.calls if argv[0] in ("mkdir", "cp", "chmod", "mv")]
        assert writes and all(root for _, root in writes)


class TestPlaceBinary:
    def test_replaces_previous_install(self, guest, tmp_path):
        guest.write("/home/dev/.local/bin/xclip", "old")
        new = tmp_path / "xclip-amd64"
        new.write_bytes(BINARY)
        path, directory = place_binary(guest, USER_TARGET, new)
        assert directory == "/home/dev/.local/bin"
        assert guest.local(path).read_bytes() == BINARY

    def test_rename_is_the_last_step(self, guest, tmp_path):
        new = tmp_path / "xclip-amd64"
        new.write_bytes(BINARY)
        place_binary(guest, USER_TARGET, new)
        assert guest.commands()[-3:] == ["cp", "chmod", "mv"]
        assert guest.calls[-1][0][-1] == "/home/dev/.local/bin/xclip"

    def test_failed_chmod_keeps_old_binary(self, guest, tmp_path):
        guest.write("/home/dev/.local/bin/xclip", "old")
        guest.fail_on["chmod"] = "chmod: changing permissions: Read-only file system"
        new = tmp_path / "xclip-amd64"
        new.write_bytes(BINARY)

        with pytest.raises(GuestCommandError):
            place_binary(guest, USER_TARGET, new)

        assert guest.read("/home/dev/.local/bin/xclip") == "old"
        assert not guest.local("/home/dev/.local/bin/xclip.new").exists()

    def test_system_target_without_root_is_an_elevation_error(self, guest, tmp_path):
        protected = SYSTEM_TARGET.model_copy(update={"requires_elevation": False})
        new = tmp_path / "xclip-amd64"
        new.write_bytes(BINARY)
        with pytest.raises(ElevationError):
            place_binary(guest, protected, new)
