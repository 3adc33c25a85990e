"""
ShareX models — a typed partial view of ApplicationConfig.json.

Only the fields the installer reads or writes are declared. Every
other key, at every level, is kept as an extra and written back
verbatim in its original position, so the rest of the third-party
document is never lost.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    model_serializer,
    model_validator,
)

ACTION_NAME = "Copy Image to WSL Clipboard"
ACTION_ARGS = '"%input"'
PERFORM_ACTIONS_MARKER = "PerformActions"


class _Passthrough(BaseModel):
    """Base for partial schemas that must round-trip unknown keys."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    _key_order: list[str] = PrivateAttr(default_factory=list)

    @model_validator(mode="wrap")
    @classmethod
    def _remember_key_order(cls, data: Any, handler: Any) -> Any:
        instance = handler(data)
        if isinstance(data, dict):
            instance._key_order = list(data)
        return instance

    @model_serializer(mode="wrap")
    def _serialize(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        for key, value in (self.model_extra or {}).items():
            data.setdefault(key, value)
        ordered = {key: data[key] for key in self._key_order if key in data}
        for key, value in data.items():
            ordered.setdefault(key, value)
        return ordered


class ExternalProgram(_Passthrough):
    """One entry of ``DefaultTaskSettings.ExternalPrograms``."""

    is_active: bool = Field(default=False, alias="IsActive")
    name: str = Field(default="", alias="Name")
    path: str = Field(default="", alias="Path")
    args: str = Field(default="", alias="Args")
    hidden_window: bool = Field(default=False, alias="HiddenWindow")
    delete_input_file: bool = Field(default=False, alias="DeleteInputFile")


class TaskSettings(_Passthrough):
    after_capture_job: str = Field(default="", alias="AfterCaptureJob")
    external_programs: list[ExternalProgram] = Field(
        default_factory=list, alias="ExternalPrograms",
    )


class ShareXConfig(_Passthrough):
    """Partial schema of ShareX's ``ApplicationConfig.json``."""

    default_task_settings: TaskSettings = Field(
        default_factory=TaskSettings, alias="DefaultTaskSettings",
    )
    use_custom_screenshots_path: bool = Field(default=False, alias="UseCustomScreenshotsPath")
    custom_screenshots_path: str = Field(default="", alias="CustomScreenshotsPath")

    def to_document(self) -> dict[str, Any]:
        """Serialize back to the JSON document shape ShareX reads."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class CompanionAction(BaseModel):
    """The ShareX action that hands a capture to the bridge."""

    model_config = ConfigDict(frozen=True)

    path: str
    name: str = ACTION_NAME
    args: str = ACTION_ARGS
    hidden_window: bool = True
    is_active: bool = True
    delete_input_file: bool = False

    def to_external_program(self) -> ExternalProgram:
        return ExternalProgram(
            IsActive=self.is_active,
            Name=self.name,
            Path=self.path,
            Args=self.args,
            HiddenWindow=self.hidden_window,
            DeleteInputFile=self.delete_input_file,
        )


class ConfigBackup(BaseModel):
    """A timestamped copy made before mutating the ShareX config."""

    original_path: Path
    backup_path: Path
