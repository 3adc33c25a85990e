"""
App-config writer — the bridge's own ``config.toml`` inside the guest.

The file is rendered from fixed keys (the bridge's parser rejects a
BOM or mixed line endings, so output is UTF-8 with ``\\n`` only) and
fully overwritten on each install. Later stages extend
``allowed_directories`` in place with set-union semantics, leaving the
file byte-identical when nothing is missing.

The path is resolved the way the bridge resolves it:

    $WSL_CLIP_BRIDGE_CONFIG
    $XDG_CONFIG_HOME/wsl-clip-bridge/config.toml
    $HOME/.config/wsl-clip-bridge/config.toml

Variables are read from a non-login process, which is also how ShareX
starts the bridge; exports made only in ``~/.bashrc`` are not seen by
either.
"""

from __future__ import annotations

import json
import logging
import re
import tomllib
from collections.abc import Iterable

from clip_bridge_setup.core.errors import ConfigIOError
from clip_bridge_setup.core.models.settings import AppSettings
from clip_bridge_setup.core.services.guest.base import GuestShell

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "WSL_CLIP_BRIDGE_CONFIG"
CONFIG_DIR_NAME = "wsl-clip-bridge"
CONFIG_FILE_NAME = "config.toml"

# Relative to the guest $HOME when no variable overrides it
CONFIG_RELATIVE_PATH = f".config/{CONFIG_DIR_NAME}/{CONFIG_FILE_NAME}"

_ALLOWED_KEY = re.compile(r"^[ \t]*allowed_directories[ \t]*=[ \t]*\[", re.MULTILINE)
_TABLE_HEADER = re.compile(r"^[ \t]*\[", re.MULTILINE)

_MANUAL_EDIT_HINT = "Add these directories to allowed_directories in {path} by hand: {dirs}"


def config_path_for(home: str) -> str:
    return f"{home.rstrip('/')}/{CONFIG_RELATIVE_PATH}"


def resolve_config_path(guest: GuestShell) -> str:
    """Guest path the bridge reads its config from."""
    override = guest.getenv(CONFIG_ENV_VAR)
    if override:
        if override.startswith("/"):
            return override
        logger.warning("Ignoring relative %s=%r", CONFIG_ENV_VAR, override)

    xdg = guest.getenv("XDG_CONFIG_HOME")
    if xdg and xdg.startswith("/"):
        return f"{xdg.rstrip('/')}/{CONFIG_DIR_NAME}/{CONFIG_FILE_NAME}"

    return config_path_for(guest.home())


def _toml_str(value: str) -> str:
    # JSON string escapes are valid TOML basic-string escapes
    return json.dumps(value, ensure_ascii=False)


def render_allowed_directories(directories: Iterable[str]) -> str:
    items = "".join(f"  {_toml_str(d)},\n" for d in directories)
    return f"allowed_directories = [\n{items}]"


def render_config(settings: AppSettings) -> str:
    """Serialize ``settings`` to the bridge's TOML format."""
    lines = [
        "# wsl-clip-bridge config",
        "",
        "# TTL for primed data in seconds (default 300)",
        f"ttl_secs = {settings.ttl_secs}",
        "",
        "# Maximum image dimension in pixels (larger images are downscaled)",
        "# Set to 0 to disable downscaling",
        f"max_image_dimension = {settings.max_image_dimension}",
        "",
        "# Security settings",
        "",
        "# Maximum file size in MB",
        f"max_file_size_mb = {settings.max_file_size_mb}",
        "",
        "# Restrict file access to the home directory",
        f"restrict_to_home = {'true' if settings.restrict_to_home else 'false'}",
        "",
    ]
    if settings.allowed_directories:
        lines.append("# Only allow files from these directories")
        lines.append(render_allowed_directories(settings.allowed_directories))
    else:
        lines += [
            "# Optional: only allow files from specific directories",
            "# allowed_directories = [",
            '#   "/mnt/c/Users/YOUR_USERNAME/Documents/ShareX",',
            '#   "/tmp",',
            "# ]",
        ]
    return "\n".join(lines) + "\n"


def write_app_config(guest: GuestShell, settings: AppSettings) -> str:
    """Overwrite the guest's config.toml; returns its guest path."""
    path = resolve_config_path(guest)
    guest.write_text(path, render_config(settings))
    logger.info("Wrote bridge config %s:%s", guest.name, path)
    return path


# ── allowed_directories ─────────────────────────────────────────


def _array_end(text: str, start: int) -> int | None:
    """Index just past the ``]`` closing the array whose ``[`` is at ``start``.

    Comments and single-line strings are skipped, so brackets inside
    them do not count. Returns None for anything this scan does not
    understand (multi-line strings, an unterminated array).
    """
    depth = 0
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "#":
            i = text.find("\n", i)
            if i == -1:
                return None
        elif ch in "\"'":
            if text.startswith(ch * 3, i):
                return None
            i += 1
            while i < n and text[i] != ch:
                if text[i] == "\n":
                    return None
                if ch == '"' and text[i] == "\\":
                    i += 1
                i += 1
            if i >= n:
                return None
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return None


def _splice(text: str, merged: list[str], added: list[str], has_key: bool) -> str | None:
    header = _TABLE_HEADER.search(text)
    limit = header.start() if header else len(text)

    if has_key:
        # Root keys precede the first table
        match = _ALLOWED_KEY.search(text, 0, limit)
        if match is None:
            return None
        end = _array_end(text, match.end() - 1)
        if end is None:
            return None
        return text[:match.start()] + render_allowed_directories(merged) + text[end:]

    block = "# Only allow files from these directories\n" + render_allowed_directories(added) + "\n"
    if header:
        return text[:header.start()] + block + "\n" + text[header.start():]
    if text and not text.endswith("\n"):
        text += "\n"
    if text:
        text += "\n"
    return text + block


def extend_allowed_directories(
    text: str,
    additions: Iterable[str],
    *,
    source: str = "config.toml",
) -> tuple[str | None, list[str]]:
    """Set-union ``additions`` into the document's ``allowed_directories``.

    The key is found by scanning the serialized TOML. Existing entries
    keep their order; new ones are appended. The rewritten document is
    parsed again before it is returned.

    Returns:
        ``(new_text, added)``. ``new_text`` is None when every entry was
        already present, so callers can skip the write entirely.

    Raises:
        ConfigIOError: the existing document is not valid TOML, or the
            key is written in a form that cannot be rewritten safely.
    """
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigIOError(f"Existing bridge config is not valid TOML: {e}") from e
    current = data.get("allowed_directories", [])
    if not isinstance(current, list):
        raise ConfigIOError("allowed_directories in the bridge config is not a list.")

    added: list[str] = []
    for entry in additions:
        if entry not in current and entry not in added:
            added.append(entry)
    if not added:
        return None, []

    merged = [*current, *added]
    new_text = _splice(text, merged, added, "allowed_directories" in data)

    try:
        rewritten = tomllib.loads(new_text) if new_text is not None else None
    except tomllib.TOMLDecodeError:
        rewritten = None
    if rewritten is None or rewritten.get("allowed_directories") != merged:
        raise ConfigIOError(
            "Cannot update allowed_directories in the bridge config without damaging it.",
            hint=_MANUAL_EDIT_HINT.format(path=source, dirs=", ".join(added)),
        )
    return new_text, added


def update_allowed_directories(
    guest: GuestShell,
    config_path: str,
    additions: Iterable[str],
) -> list[str]:
    """Extend ``allowed_directories`` in the guest config file.

    Returns:
        The entries that were added (empty when the file was untouched).

    Raises:
        ConfigIOError: the config file is missing, unparsable, or could
            not be rewritten safely (the file is then left as it was).
    """
    text = guest.read_text(config_path)
    if text is None:
        raise ConfigIOError(f"Bridge config not found in {guest.name}: {config_path}")

    new_text, added = extend_allowed_directories(
        text, additions, source=f"{guest.name}:{config_path}",
    )
    if new_text is None:
        logger.debug("allowed_directories already complete in %s", config_path)
        return []

    guest.write_text(config_path, new_text)
    logger.info("Allowed directories added: %s", ", ".join(added))
    return added
