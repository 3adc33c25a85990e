"""
Tests for release download and checksum verification.

No network: ``_open`` is patched to serve bytes or raise.
"""

import hashlib
import io
import logging
import urllib.error
from unittest.mock import patch

import pytest

from clip_bridge_setup.core.errors import DownloadError, IntegrityError
from clip_bridge_setup.core.services.artifact.download import (
    _open,
    build_release_url,
    download_release,
    fetch_checksum,
    parse_checksum,
)

URL = "https://github.com/camjac251/wsl-clip-bridge/releases/latest/download/xclip-amd64"
BINARY = b"\x7fELF fake binary"
DIGEST = hashlib.sha256(BINARY).hexdigest()

_OPEN = "clip_bridge_setup.core.services.artifact.download._open"


def _not_found(url):
    return urllib.error.HTTPError(url, 404, "Not Found", hdrs=None, fp=None)


def serve(routes: dict):
    """``_open`` replacement: bytes are served, exceptions raised."""

    def fake_open(url):
        value = routes[url]
        if isinstance(value, Exception):
            raise value
        return io.BytesIO(value)

    return fake_open


class TestReleaseUrl:
    def test_convention(self):
        assert build_release_url("camjac251/wsl-clip-bridge", "amd64") == URL

    def test_plain_http_refused(self):
        with pytest.raises(DownloadError, match="insecure"):
            _open("http://example.com/xclip-amd64")


# ═══════════════════════════════════════════════════════════════════
#  parse_checksum
# ═══════════════════════════════════════════════════════════════════


class TestParseChecksum:
    def test_bare_digest(self):
        assert parse_checksum(DIGEST + "\n") == DIGEST

    def test_sha256sum_line(self):
        assert parse_checksum(f"{DIGEST}  xclip-amd64\n") == DIGEST

    def test_binary_mode_marker(self):
        assert parse_checksum(f"{DIGEST} *xclip-amd64") == DIGEST

    def test_lowercases(self):
        assert parse_checksum(DIGEST.upper()) == DIGEST

    def test_leading_blank_lines(self):
        assert parse_checksum(f"\n\n{DIGEST}\n") == DIGEST

    @pytest.mark.parametrize(
        "text",
        ["", "not a checksum", DIGEST[:-1], DIGEST + "0", "<html>404</html>"],
    )
    def test_garbage_is_an_integrity_error(self, text):
        with pytest.raises(IntegrityError):
            parse_checksum(text)


# ═══════════════════════════════════════════════════════════════════
#  fetch_checksum
# ═══════════════════════════════════════════════════════════════════


class TestFetchChecksum:
    def test_missing_sidecar_warns(self, caplog):
        caplog.set_level(logging.WARNING)
        with patch(_OPEN, side_effect=serve({URL + ".sha256": _not_found(URL)})):
            assert fetch_checksum(URL) is None
        assert "skipping verification" in caplog.text

    def test_network_failure_warns(self):
        routes = {URL + ".sha256": urllib.error.URLError("timed out")}
        with patch(_OPEN, side_effect=serve(routes)):
            assert fetch_checksum(URL) is None

    def test_present_sidecar(self):
        routes = {URL + ".sha256": f"{DIGEST}  xclip-amd64\n".encode()}
        with patch(_OPEN, side_effect=serve(routes)):
            assert fetch_checksum(URL) == DIGEST

    def test_malformed_sidecar_is_fatal(self):
        routes = {URL + ".sha256": b"<html>oops</html>"}
        with patch(_OPEN, side_effect=serve(routes)):
            with pytest.raises(IntegrityError):
                fetch_checksum(URL)


# ═══════════════════════════════════════════════════════════════════
#  download_release
# ═══════════════════════════════════════════════════════════════════


class TestDownloadRelease:
    def test_verified(self, tmp_path):
        routes = {URL: BINARY, URL + ".sha256": DIGEST.encode()}
        with patch(_OPEN, side_effect=serve(routes)):
            artifact = download_release(URL, tmp_path)
        assert artifact.verified
        assert artifact.local_temp_path == tmp_path / "xclip-amd64"
        assert artifact.local_temp_path.read_bytes() == BINARY

    def test_unverified_when_sidecar_absent(self, tmp_path):
        routes = {URL: BINARY, URL + ".sha256": _not_found(URL)}
        with patch(_OPEN, side_effect=serve(routes)):
            artifact = download_release(URL, tmp_path)
        assert not artifact.verified
        assert artifact.actual_checksum == DIGEST

    def test_mismatch(self, tmp_path):
        routes = {URL: BINARY, URL + ".sha256": ("0" * 64).encode()}
        with patch(_OPEN, side_effect=serve(routes)):
            with pytest.raises(IntegrityError, match="mismatch"):
                download_release(URL, tmp_path)

    def test_http_error(self, tmp_path):
        with patch(_OPEN, side_effect=serve({URL: _not_found(URL)})):
            with pytest.raises(DownloadError, match="HTTP 404"):
                download_release(URL, tmp_path)

    def test_empty_body(self, tmp_path):
        with patch(_OPEN, side_effect=serve({URL: b""})):
            with pytest.raises(DownloadError, match="empty"):
                download_release(URL, tmp_path)
