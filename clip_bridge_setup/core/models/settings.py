"""
Bridge settings — the working copy of the guest's config.toml.

Field names match the keys the bridge runtime reads.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

DEFAULT_TTL_SECS = 300
DEFAULT_MAX_IMAGE_DIMENSION = 1568
DEFAULT_MAX_FILE_SIZE_MB = 100


class AppSettings(BaseModel):
    """Settings written to ``~/.config/wsl-clip-bridge/config.toml``."""

    ttl_secs: int = Field(default=DEFAULT_TTL_SECS, ge=1, le=86_400)
    max_image_dimension: int = Field(default=DEFAULT_MAX_IMAGE_DIMENSION, ge=0, le=10_000)
    restrict_to_home: bool = True
    max_file_size_mb: int = DEFAULT_MAX_FILE_SIZE_MB
    allowed_directories: list[str] = Field(default_factory=list)

    @field_validator("allowed_directories")
    @classmethod
    def _check_dirs(cls, value: list[str]) -> list[str]:
        unique: list[str] = []
        for entry in value:
            if not entry.startswith("/"):
                raise ValueError(f"allowed directory must be absolute: {entry!r}")
            if entry not in unique:
                unique.append(entry)
        return unique

    def add_allowed_directory(self, path: str) -> bool:
        """Append ``path`` if absent. Returns True if it was added."""
        if not path.startswith("/"):
            raise ValueError(f"allowed directory must be absolute: {path!r}")
        if path in self.allowed_directories:
            return False
        self.allowed_directories.append(path)
        return True
