"""
ShareX config mutation — register the bridge action.

Both edits are idempotent: the action is matched by exact name and
updated in place, and the ``PerformActions`` flag is set-unioned into
``AfterCaptureJob``. Unknown fields survive untouched (see
``ShareXConfig``).
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Literal

from pydantic import ValidationError

from clip_bridge_setup.core.errors import ConfigIOError
from clip_bridge_setup.core.models.companion import (
    PERFORM_ACTIONS_MARKER,
    CompanionAction,
    ShareXConfig,
)

logger = logging.getLogger(__name__)

# ShareX writes "None" for an empty flags value
_EMPTY_FLAGS = "None"


def load_sharex_config(path: Path) -> ShareXConfig:
    """Parse ShareX's JSON (a leading BOM is tolerated).

    Raises:
        ConfigIOError: unreadable, not JSON, or not an object.
    """
    try:
        raw = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise ConfigIOError(f"Cannot read {path}: {e}") from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigIOError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigIOError(f"Expected a JSON object in {path}, got {type(data).__name__}")
    try:
        return ShareXConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigIOError(f"Unexpected ShareX settings layout in {path}: {e}") from e


def save_sharex_config(path: Path, config: ShareXConfig) -> None:
    """Overwrite ``path`` with ``config`` (temp file + replace).

    Raises:
        ConfigIOError: the write failed; the original is left as it was.
    """
    content = json.dumps(config.to_document(), indent=2, ensure_ascii=False)
    try:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}_", suffix=".tmp")
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            tmp.replace(path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except OSError as e:
        raise ConfigIOError(f"Cannot write {path}: {e}") from e
    logger.debug("Saved ShareX config %s", path)


def upsert_action(config: ShareXConfig, action: CompanionAction) -> Literal["added", "updated"]:
    """Add ``action`` or update the entry with the same name.

    Later duplicates of the name, if any, are removed.
    """
    task = config.default_task_settings
    programs = list(task.external_programs)
    status: Literal["added", "updated"] = "added"
    kept = []

    for program in programs:
        if program.name != action.name:
            kept.append(program)
            continue
        if status == "updated":
            logger.warning("Removing duplicate ShareX action %r", action.name)
            continue
        program.is_active = action.is_active
        program.path = action.path
        program.args = action.args
        program.hidden_window = action.hidden_window
        program.delete_input_file = action.delete_input_file
        kept.append(program)
        status = "updated"

    if status == "added":
        kept.append(action.to_external_program())

    task.external_programs = kept
    config.default_task_settings = task
    logger.info("ShareX action %r %s", action.name, status)
    return status


def ensure_flag(flags: str, marker: str = PERFORM_ACTIONS_MARKER) -> str:
    """Set-union ``marker`` into a comma-joined flags value.

    Returns ``flags`` unchanged when the marker already appears exactly
    once; otherwise a normalized ``"A, B, marker"`` string.
    """
    tokens = [t.strip() for t in flags.split(",") if t.strip()]
    if tokens.count(marker) == 1:
        return flags

    unique: list[str] = []
    for token in tokens:
        if token != _EMPTY_FLAGS and token not in unique:
            unique.append(token)
    if marker not in unique:
        unique.append(marker)
    return ", ".join(unique)


def ensure_perform_actions(config: ShareXConfig) -> bool:
    """Make sure ShareX runs actions after capture. Returns True if changed."""
    task = config.default_task_settings
    updated = ensure_flag(task.after_capture_job)
    if updated == task.after_capture_job:
        return False
    task.after_capture_job = updated
    config.default_task_settings = task
    logger.info("AfterCaptureJob is now %r", updated)
    return True
