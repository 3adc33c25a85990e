"""
Companion integration — register the bridge as a ShareX after-capture action.

Stages run in a fixed order, each a precondition of the next:

    locate → process gate → backup → script → mutate → verify

The process gate runs before the backup so a declined close leaves the
ShareX folder exactly as it was. Mutation only happens after a fresh
backup exists; that backup is the manual rollback path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from clip_bridge_setup.core.models.companion import CompanionAction
from clip_bridge_setup.core.services.app_config import update_allowed_directories
from clip_bridge_setup.core.services.companion.backup import backup_config
from clip_bridge_setup.core.services.companion.locate import (
    AskPathFn,
    locate_config,
    screenshot_directory,
)
from clip_bridge_setup.core.services.companion.mutate import (
    ensure_perform_actions,
    load_sharex_config,
    save_sharex_config,
    upsert_action,
)
from clip_bridge_setup.core.services.companion.process_gate import (
    SETTLE_SECONDS,
    ConfirmCloseFn,
    gate_companion,
)
from clip_bridge_setup.core.services.companion.script import (
    default_script_path,
    render_companion_script,
    write_companion_script,
)
from clip_bridge_setup.core.services.guest.base import GuestShell

logger = logging.getLogger(__name__)

GUEST_TEMP_DIR = "/tmp"


@dataclass
class CompanionReport:
    """Outcome of one integration run."""

    config_path: Path
    backup_path: Path
    script_path: Path
    action_status: str
    closed_app: bool = False
    marker_added: bool = False
    screenshots_dir: Path | None = None
    allowed_added: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "config_path": str(self.config_path),
            "backup_path": str(self.backup_path),
            "script_path": str(self.script_path),
            "action": self.action_status,
            "closed_app": self.closed_app,
            "marker_added": self.marker_added,
            "screenshots_dir": str(self.screenshots_dir) if self.screenshots_dir else None,
            "allowed_added": list(self.allowed_added),
        }


def integrate_companion(
    guest: GuestShell,
    *,
    binary_path: str,
    app_config_path: str,
    confirm_close: ConfirmCloseFn,
    config_path: Path | None = None,
    ask_path: AskPathFn | None = None,
    script_path: Path | None = None,
    settle_seconds: float = SETTLE_SECONDS,
    restrict_to_home: bool = True,
) -> CompanionReport:
    """Wire ShareX to the bridge installed at ``binary_path`` in ``guest``.

    Args:
        binary_path: Guest path of the installed bridge binary.
        app_config_path: Guest path of the bridge's config.toml.
        confirm_close: Asked before ShareX is closed.
        config_path: Explicit ApplicationConfig.json (or ShareX folder).
        ask_path: Asked for a path when the default locations miss.
        script_path: Where to write the batch file (default under
            ``%LOCALAPPDATA%``).

    Raises:
        ConfigNotFound: ShareX settings could not be located.
        CompanionStateError: ShareX is running and was not closed.
        ConfigIOError: a file could not be read, parsed or written.
        InvalidIdentifierError: the script cannot be rendered safely.
    """
    sharex_json = locate_config(config_path, ask=ask_path)
    closed = gate_companion(confirm_close, settle_seconds=settle_seconds)
    backup = backup_config(sharex_json)

    script = write_companion_script(
        script_path or default_script_path(),
        render_companion_script(guest.name, binary_path),
    )

    config = load_sharex_config(sharex_json)
    status = upsert_action(config, CompanionAction(path=str(script)))
    marker_added = ensure_perform_actions(config)
    save_sharex_config(sharex_json, config)

    root = sharex_json.parent
    screenshots = screenshot_directory(config, root)
    wanted = [
        guest.to_guest_path(root),
        guest.to_guest_path(screenshots),
        GUEST_TEMP_DIR,
    ]
    added = update_allowed_directories(guest, app_config_path, wanted)

    if restrict_to_home:
        home = guest.home().rstrip("/") + "/"
        outside = [d for d in wanted if d != GUEST_TEMP_DIR and not d.startswith(home)]
        if outside:
            logger.warning(
                "restrict_to_home is on; the bridge will refuse captures from %s",
                ", ".join(outside),
            )

    return CompanionReport(
        config_path=sharex_json,
        backup_path=backup.backup_path,
        script_path=script,
        action_status=status,
        closed_app=closed,
        marker_added=marker_added,
        screenshots_dir=screenshots,
        allowed_added=added,
    )
