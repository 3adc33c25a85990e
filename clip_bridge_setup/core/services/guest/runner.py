"""
Command runner — the single place ``subprocess.run`` is called.

Commands are always argument vectors (never ``shell=True``). There is
no timeout: setup is attended, and a hung guest command is better
surfaced to the user than killed halfway through an install.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of one command. Output is decoded text."""

    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def describe_failure(self) -> str:
        detail = (self.stderr or self.stdout).strip()[-500:]
        msg = f"Command failed (exit {self.returncode}): {self.argv[0]}"
        return f"{msg}: {detail}" if detail else msg


def decode_output(raw: bytes) -> str:
    """Decode process output that may be UTF-8 or UTF-16LE.

    ``wsl.exe`` writes UTF-16LE to pipes unless ``WSL_UTF8=1`` is
    honoured (older builds ignore it). NUL bytes give it away.
    """
    if not raw:
        return ""
    if raw.startswith(b"\xff\xfe"):
        return raw[2:].decode("utf-16-le", errors="replace")
    if b"\x00" in raw:
        return raw.decode("utf-16-le", errors="replace").replace("\x00", "")
    return raw.decode("utf-8", errors="replace")


def run_command(
    argv: list[str],
    *,
    input_bytes: bytes | None = None,
    env_overrides: dict[str, str] | None = None,
) -> CommandResult:
    """Run ``argv`` to completion and capture its output.

    Args:
        argv: Command and arguments.
        input_bytes: Optional data piped to stdin.
        env_overrides: Extra environment variables.

    Returns:
        A ``CommandResult``. A missing executable yields returncode 127
        rather than raising, so callers branch on ``ok`` only.
    """
    env = os.environ.copy()
    env["WSL_UTF8"] = "1"
    if env_overrides:
        env.update(env_overrides)

    logger.debug("Running: %s", argv)
    start = time.monotonic()
    try:
        proc = subprocess.run(
            argv,
            input=input_bytes,
            capture_output=True,
            env=env,
            check=False,
        )
    except FileNotFoundError as e:
        return CommandResult(argv=list(argv), returncode=127, stderr=str(e))

    result = CommandResult(
        argv=list(argv),
        returncode=proc.returncode,
        stdout=decode_output(proc.stdout),
        stderr=decode_output(proc.stderr),
        elapsed_ms=int((time.monotonic() - start) * 1000),
    )
    if not result.ok:
        logger.debug("Exit %d from %s: %s", result.returncode, argv[0], result.stderr.strip())
    return result
