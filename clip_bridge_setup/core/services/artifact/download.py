"""
Release download and checksum verification (host side).

The binary is fetched over HTTPS (TLS 1.2 minimum) and hashed while
it streams to disk. A ``<url>.sha256`` sidecar is optional: when it is
missing we warn and continue; when it is present it must match.
"""

from __future__ import annotations

import hashlib
import logging
import re
import ssl
import urllib.error
import urllib.request
from pathlib import Path

from clip_bridge_setup import __version__
from clip_bridge_setup.core.errors import DownloadError, IntegrityError
from clip_bridge_setup.core.models.artifact import ReleaseArtifact

logger = logging.getLogger(__name__)

RELEASE_URL_TEMPLATE = "https://github.com/{repo}/releases/latest/download/xclip-{arch}"
CHECKSUM_SUFFIX = ".sha256"

_USER_AGENT = f"wsl-clip-bridge-setup/{__version__}"
_TIMEOUT = 60
_CHUNK = 64 * 1024

# "<hex>", "<hex>  name" (text mode) or "<hex> *name" (binary mode)
_CHECKSUM_LINE = re.compile(r"^([0-9A-Fa-f]{64})(?:\s+\*?\S.*)?$")


def build_release_url(repo: str, arch: str) -> str:
    return RELEASE_URL_TEMPLATE.format(repo=repo, arch=arch)


def _ssl_context() -> ssl.SSLContext:
    ctx = ssl.create_default_context()
    ctx.minimum_version = ssl.TLSVersion.TLSv1_2
    return ctx


def _open(url: str):
    if not url.lower().startswith("https://"):
        raise DownloadError(f"Refusing to download over an insecure URL: {url}")
    req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
    return urllib.request.urlopen(req, timeout=_TIMEOUT, context=_ssl_context())


def parse_checksum(text: str) -> str:
    """Extract the digest from sidecar content, lower-cased.

    Accepts a bare 64-hex digest or a ``sha256sum`` line
    (``"<hex>  <filename>"``). The first non-blank line is used.

    Raises:
        IntegrityError: no digest could be found.
    """
    for line in text.splitlines():
        line = line.strip().lstrip("\ufeff")
        if not line:
            continue
        match = _CHECKSUM_LINE.match(line)
        if match:
            return match.group(1).lower()
        break
    raise IntegrityError("Published checksum file is not a SHA-256 digest.")


def download_file(url: str, dest: Path) -> str:
    """Stream ``url`` into ``dest``; return the SHA-256 of what was written.

    Raises:
        DownloadError: HTTP or network failure, or an empty body.
    """
    logger.info("Downloading %s", url)
    h = hashlib.sha256()
    size = 0
    try:
        with _open(url) as resp, open(dest, "wb") as out:
            for chunk in iter(lambda: resp.read(_CHUNK), b""):
                out.write(chunk)
                h.update(chunk)
                size += len(chunk)
    except urllib.error.HTTPError as e:
        raise DownloadError(f"Download failed: HTTP {e.code} for {url}") from e
    except (urllib.error.URLError, OSError) as e:
        raise DownloadError(f"Download failed for {url}: {e}") from e

    if size == 0:
        raise DownloadError(f"Downloaded file is empty: {url}")
    logger.info("Downloaded %d bytes to %s", size, dest)
    return h.hexdigest()


def fetch_checksum(url: str) -> str | None:
    """Fetch the ``.sha256`` sidecar for ``url``.

    Returns:
        The expected digest, or None when no sidecar could be fetched.

    Raises:
        IntegrityError: a sidecar was served but holds no digest.
    """
    sidecar = url + CHECKSUM_SUFFIX
    try:
        with _open(sidecar) as resp:
            text = resp.read(4096).decode("utf-8", errors="replace")
    except urllib.error.HTTPError as e:
        if e.code == 404:
            logger.warning("No checksum published for this release; skipping verification.")
        else:
            logger.warning("Checksum file unavailable (HTTP %s); skipping verification.", e.code)
        return None
    except (urllib.error.URLError, OSError) as e:
        logger.warning("Could not fetch checksum (%s); skipping verification.", e)
        return None
    return parse_checksum(text)


def download_release(url: str, work_dir: Path) -> ReleaseArtifact:
    """Download the release binary into ``work_dir`` and verify it.

    Raises:
        DownloadError: the binary could not be fetched.
        IntegrityError: a published checksum does not match.
    """
    local_path = work_dir / url.rsplit("/", 1)[-1]
    actual = download_file(url, local_path)
    expected = fetch_checksum(url)

    artifact = ReleaseArtifact(
        url=url,
        local_temp_path=local_path,
        expected_checksum=expected,
        actual_checksum=actual,
    )
    if not artifact.checksum_matches:
        raise IntegrityError(
            f"SHA-256 mismatch for {url}\n"
            f"Expected: {expected}\n"
            f"Got:      {actual}"
        )
    if artifact.verified:
        logger.info("Checksum verified (%s)", actual)
    return artifact
