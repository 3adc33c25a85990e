"""
Companion script — the batch file ShareX runs after each capture.

ShareX passes the capture path as the only argument. The script turns
it into a guest path and hands it to the bridge binary, returning the
binary's exit code to ShareX.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path

from clip_bridge_setup.core.errors import ConfigIOError, InvalidIdentifierError
from clip_bridge_setup.core.models.guest import sanitize_identifier

logger = logging.getLogger(__name__)

SCRIPT_DIR_NAME = "wsl-clip-bridge"
SCRIPT_NAME = "sharex-to-wsl.cmd"

# Characters cmd.exe treats specially are excluded
_SAFE_GUEST_PATH = re.compile(r"^/[A-Za-z0-9._/+-]+$")

# extension -> MIME type the bridge accepts; anything else is sent as PNG
_MIME_BY_EXTENSION = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}
_DEFAULT_MIME = "image/png"


def default_script_path(env: Mapping[str, str] | None = None) -> Path:
    """``%LOCALAPPDATA%\\wsl-clip-bridge\\sharex-to-wsl.cmd``."""
    env = os.environ if env is None else env
    base = env.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    return Path(base) / SCRIPT_DIR_NAME / SCRIPT_NAME


def render_companion_script(instance_name: str, binary_path: str) -> str:
    """Batch file source for ``instance_name`` (CRLF line endings).

    Raises:
        InvalidIdentifierError: nothing of the name survives sanitizing,
            or ``binary_path`` is not a plain absolute guest path.
    """
    name = sanitize_identifier(instance_name)
    if not name:
        raise InvalidIdentifierError(f"Unusable distribution name: {instance_name!r}")
    if name != instance_name:
        logger.warning("Distribution name %r sanitized to %r", instance_name, name)
    if not _SAFE_GUEST_PATH.fullmatch(binary_path):
        raise InvalidIdentifierError(
            f"Binary path {binary_path!r} cannot be used in a batch file.",
            hint="Install to a path without spaces or shell metacharacters.",
        )

    wsl = f"wsl.exe -d {name} --exec"
    lines = [
        "@echo off",
        "rem Generated by clip-bridge-setup. Re-run setup to regenerate.",
        "setlocal",
        'if "%~1"=="" (',
        "  echo usage: %~nx0 IMAGE_FILE 1>&2",
        "  exit /b 2",
        ")",
        f'set "MIME={_DEFAULT_MIME}"',
    ]
    lines += [
        f'if /i "%~x1"=="{ext}" set "MIME={mime}"'
        for ext, mime in _MIME_BY_EXTENSION.items()
    ]
    lines += [
        'set "GUESTPATH="',
        f'for /f "usebackq delims=" %%p in (`{wsl} wslpath -u "%~f1"`) do set "GUESTPATH=%%p"',
        "if not defined GUESTPATH (",
        "  echo could not translate %~f1 1>&2",
        "  exit /b 1",
        ")",
        f'{wsl} {binary_path} -selection clipboard -t %MIME% -i "%GUESTPATH%"',
        "exit /b %ERRORLEVEL%",
    ]
    return "\r\n".join(lines) + "\r\n"


def write_companion_script(path: Path, content: str) -> Path:
    """Write the script, creating its folder.

    Raises:
        ConfigIOError: the file could not be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        # newline="" keeps the CRLFs as rendered
        with open(path, "w", encoding="ascii", newline="") as f:
            f.write(content)
    except (OSError, UnicodeEncodeError) as e:
        raise ConfigIOError(f"Cannot write companion script {path}: {e}") from e
    logger.info("Wrote companion script %s", path)
    return path
