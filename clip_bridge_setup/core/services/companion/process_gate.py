"""
Process gate — ShareX must not be running while its settings change.

ShareX saves ApplicationConfig.json on exit, which would silently
discard our edit. The gate either closes it (after confirmation) or
refuses to continue. It never polls or retries.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import psutil

from clip_bridge_setup.core.errors import CompanionStateError

logger = logging.getLogger(__name__)

SHAREX_PROCESS_NAMES = frozenset({"sharex.exe", "sharex"})

# Time for ShareX to finish writing its settings after it exits
SETTLE_SECONDS = 2.0
_EXIT_TIMEOUT = 10

# (number of running processes) -> may we close them?
ConfirmCloseFn = Callable[[int], bool]


def find_companion_processes() -> list[psutil.Process]:
    found: list[psutil.Process] = []
    for proc in psutil.process_iter(["name"]):
        name = (proc.info.get("name") or "").lower()
        if name in SHAREX_PROCESS_NAMES:
            found.append(proc)
    return found


def gate_companion(
    confirm: ConfirmCloseFn,
    *,
    settle_seconds: float = SETTLE_SECONDS,
) -> bool:
    """Ensure ShareX is not running.

    Returns:
        True if ShareX was closed, False if it was not running.

    Raises:
        CompanionStateError: the user declined, or ShareX would not exit.
    """
    running = find_companion_processes()
    if not running:
        return False

    logger.info("ShareX is running (pid %s)", ", ".join(str(p.pid) for p in running))
    if not confirm(len(running)):
        raise CompanionStateError(
            "ShareX is running; its settings were left untouched."
        )

    for proc in running:
        try:
            proc.terminate()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied as e:
            raise CompanionStateError(f"Not allowed to close ShareX (pid {proc.pid}).") from e

    _gone, alive = psutil.wait_procs(running, timeout=_EXIT_TIMEOUT)
    if alive:
        raise CompanionStateError(
            f"ShareX did not exit (pid {', '.join(str(p.pid) for p in alive)})."
        )

    time.sleep(settle_seconds)
    logger.info("ShareX closed")
    return True
