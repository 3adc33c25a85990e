"""
Backup guard — timestamped copy of the ShareX config before any edit.

Backups are the manual rollback path: they are never overwritten and
never pruned.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path

from clip_bridge_setup.core.errors import ConfigIOError
from clip_bridge_setup.core.models.companion import ConfigBackup

logger = logging.getLogger(__name__)


def backup_path_for(path: Path, now: datetime | None = None) -> Path:
    """``<name>.bak.YYYYMMDD_HHMMSS`` beside ``path``, never an existing file."""
    ts = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    candidate = path.with_name(f"{path.name}.bak.{ts}")
    n = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.name}.bak.{ts}_{n}")
        n += 1
    return candidate


def backup_config(path: Path, now: datetime | None = None) -> ConfigBackup:
    """Copy ``path`` to a fresh timestamped sibling.

    Raises:
        ConfigIOError: the copy failed.
    """
    dest = backup_path_for(path, now)
    try:
        shutil.copy2(path, dest)
    except OSError as e:
        raise ConfigIOError(f"Could not back up {path}: {e}") from e
    logger.info("Backed up %s → %s", path, dest)
    return ConfigBackup(original_path=path, backup_path=dest)


def list_backups(path: Path) -> list[Path]:
    """Existing backups of ``path``, oldest first."""
    return sorted(path.parent.glob(f"{path.name}.bak.*"))
