"""
Locate ShareX's settings and derive the folders it writes captures to.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path

from clip_bridge_setup.core.errors import ConfigNotFound
from clip_bridge_setup.core.models.companion import ShareXConfig

logger = logging.getLogger(__name__)

SHAREX_CONFIG_NAME = "ApplicationConfig.json"
SCREENSHOTS_SUBDIR = "Screenshots"

# () -> user-entered path, or None to give up
AskPathFn = Callable[[], str | None]


def default_config_candidates(env: Mapping[str, str] | None = None) -> list[Path]:
    """Default ShareX personal-folder locations, most likely first."""
    env = os.environ if env is None else env
    candidates: list[Path] = []
    for var in ("USERPROFILE", "OneDrive"):
        base = env.get(var)
        if base:
            candidate = Path(base) / "Documents" / "ShareX" / SHAREX_CONFIG_NAME
            if candidate not in candidates:
                candidates.append(candidate)
    return candidates


def _as_config_file(raw: str) -> Path:
    path = Path(raw.strip().strip('"')).expanduser()
    if path.is_dir():
        path = path / SHAREX_CONFIG_NAME
    return path


def locate_config(
    explicit: Path | None = None,
    *,
    ask: AskPathFn | None = None,
    env: Mapping[str, str] | None = None,
) -> Path:
    """Find ``ApplicationConfig.json``.

    An explicit path (file or ShareX folder) must exist. Otherwise the
    default locations are tried, then ``ask`` is offered one chance.

    Raises:
        ConfigNotFound: nothing usable was found.
    """
    if explicit is not None:
        path = _as_config_file(str(explicit))
        if path.is_file():
            return path
        raise ConfigNotFound(f"ShareX config not found: {path}")

    for candidate in default_config_candidates(env):
        if candidate.is_file():
            logger.info("Found ShareX config at %s", candidate)
            return candidate
        logger.debug("No ShareX config at %s", candidate)

    if ask is not None:
        answer = ask()
        if answer and answer.strip():
            path = _as_config_file(answer)
            if path.is_file():
                return path
            raise ConfigNotFound(f"ShareX config not found: {path}")

    raise ConfigNotFound("ShareX config (ApplicationConfig.json) was not found.")


def screenshot_directory(config: ShareXConfig, root: Path) -> Path:
    """Where ShareX saves captures: the custom path, else ``<root>/Screenshots``."""
    custom = config.custom_screenshots_path.strip()
    if config.use_custom_screenshots_path and custom:
        return Path(custom)
    return root / SCREENSHOTS_SUBDIR
