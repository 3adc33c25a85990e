"""
Release artifact model — a downloaded binary and its integrity state.
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel, field_validator

HEX64_RE = re.compile(r"^[0-9A-Fa-f]{64}$")


class ReleaseArtifact(BaseModel):
    """A release binary fetched into a run-scoped temp directory."""

    url: str
    local_temp_path: Path
    expected_checksum: str | None = None
    actual_checksum: str

    @field_validator("expected_checksum", "actual_checksum")
    @classmethod
    def _check_hex(cls, value: str | None) -> str | None:
        if value is not None and not HEX64_RE.fullmatch(value):
            raise ValueError("checksum must be 64 hex characters")
        return value

    @property
    def verified(self) -> bool:
        """Whether a published checksum was present and matched."""
        return self.expected_checksum is not None and self.checksum_matches

    @property
    def checksum_matches(self) -> bool:
        """True when no checksum was published or it equals the computed one."""
        if self.expected_checksum is None:
            return True
        return self.expected_checksum.lower() == self.actual_checksum.lower()
