"""
Domain models — Pydantic types for the installer.

All models are re-exported here for convenient access:

    from clip_bridge_setup.core.models import GuestInstance, AppSettings, ShareXConfig
"""

from clip_bridge_setup.core.models.artifact import ReleaseArtifact
from clip_bridge_setup.core.models.companion import (
    CompanionAction,
    ConfigBackup,
    ExternalProgram,
    ShareXConfig,
    TaskSettings,
)
from clip_bridge_setup.core.models.guest import (
    INSTALL_TARGETS,
    SYSTEM_TARGET,
    USER_TARGET,
    GuestInstance,
    InstallTarget,
)
from clip_bridge_setup.core.models.settings import AppSettings

__all__ = [
    # artifact.py
    "ReleaseArtifact",
    # companion.py
    "CompanionAction",
    "ConfigBackup",
    "ExternalProgram",
    "ShareXConfig",
    "TaskSettings",
    # guest.py
    "GuestInstance",
    "INSTALL_TARGETS",
    "InstallTarget",
    "SYSTEM_TARGET",
    "USER_TARGET",
    # settings.py
    "AppSettings",
]
