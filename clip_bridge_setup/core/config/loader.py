"""
Configuration loader — optional installer defaults from YAML.

A ``wcb-setup.yml`` lets an unattended run (``--yes``) use answers
other than the built-in defaults. Precedence, highest first:

    CLI flags  >  wcb-setup.yml  >  built-in defaults

Example::

    repo: camjac251/wsl-clip-bridge
    distro: Ubuntu-2404
    target: user
    ttl_secs: 600
    max_image_dimension: 0
    restrict_to_home: true
    sharex_config: C:/Users/me/Documents/ShareX/ApplicationConfig.json
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from clip_bridge_setup.core.errors import ConfigIOError
from clip_bridge_setup.core.models.guest import is_valid_identifier
from clip_bridge_setup.core.models.settings import (
    DEFAULT_MAX_IMAGE_DIMENSION,
    DEFAULT_TTL_SECS,
)

logger = logging.getLogger(__name__)

INSTALLER_CONFIG_FILE = "wcb-setup.yml"
DEFAULT_REPO = "camjac251/wsl-clip-bridge"


class InstallerConfig(BaseModel):
    """Defaults for every installer prompt."""

    model_config = ConfigDict(extra="forbid")

    repo: str = DEFAULT_REPO
    distro: str | None = None
    target: Literal["user", "system"] = "user"
    ttl_secs: int = Field(default=DEFAULT_TTL_SECS, ge=1, le=86_400)
    max_image_dimension: int = Field(default=DEFAULT_MAX_IMAGE_DIMENSION, ge=0, le=10_000)
    restrict_to_home: bool = True
    sharex_config: Path | None = None

    @field_validator("repo")
    @classmethod
    def _check_repo(cls, value: str) -> str:
        owner, sep, name = value.strip().partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ValueError("repo must look like 'owner/name'")
        return f"{owner}/{name}"

    @field_validator("distro")
    @classmethod
    def _check_distro(cls, value: str | None) -> str | None:
        if value is not None and not is_valid_identifier(value):
            raise ValueError(f"invalid distribution name: {value!r}")
        return value


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Return ``wcb-setup.yml`` in ``start_dir`` (default: cwd) if present."""
    candidate = (start_dir or Path.cwd()) / INSTALLER_CONFIG_FILE
    return candidate if candidate.is_file() else None


def load_installer_config(path: Path | None = None) -> InstallerConfig:
    """Load installer defaults.

    Args:
        path: Explicit YAML file. If None, ``wcb-setup.yml`` in the
            current directory is used when present, else built-in defaults.

    Raises:
        ConfigIOError: If an explicit file is missing, or any file is
            unreadable, not YAML, or fails validation.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            return InstallerConfig()
    elif not path.is_file():
        raise ConfigIOError(f"Config file not found: {path}")

    logger.debug("Loading installer config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigIOError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigIOError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return InstallerConfig()
    if not isinstance(data, dict):
        raise ConfigIOError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = InstallerConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigIOError(f"Invalid installer configuration in {path}: {e}") from e

    logger.info("Loaded installer defaults from %s", path)
    return config
