"""
Install use case — the end-to-end provisioning run.

Stages, strictly in order:

    probe → select → architecture → settings → artifact
          → shell profile → bridge config → ShareX

Every question goes through a ``Prompter``. ``AutoPrompter`` answers
with the documented defaults, which is what ``--yes`` uses. The first
``InstallerError`` stops the run; the result records which stage
failed and the hint to show. Nothing is retried: the user fixes the
cause and runs setup again, and every stage is safe to repeat.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from clip_bridge_setup.core.config.loader import DEFAULT_REPO, InstallerConfig
from clip_bridge_setup.core.errors import InstallerError
from clip_bridge_setup.core.models.guest import INSTALL_TARGETS, GuestInstance
from clip_bridge_setup.core.models.settings import (
    DEFAULT_MAX_IMAGE_DIMENSION,
    DEFAULT_TTL_SECS,
    AppSettings,
)
from clip_bridge_setup.core.services.app_config import write_app_config
from clip_bridge_setup.core.services.artifact.download import build_release_url
from clip_bridge_setup.core.services.artifact.installer import (
    InstalledArtifact,
    install_artifact,
)
from clip_bridge_setup.core.services.companion.integrate import (
    CompanionReport,
    integrate_companion,
)
from clip_bridge_setup.core.services.companion.process_gate import SETTLE_SECONDS
from clip_bridge_setup.core.services.guest.base import GuestShell
from clip_bridge_setup.core.services.guest.wsl import WslGuest
from clip_bridge_setup.core.services.probe import ProbeResult, probe, probe_guest
from clip_bridge_setup.core.services.selection import select_instance
from clip_bridge_setup.core.services.shell_profile import PatchReport, ensure_path

logger = logging.getLogger(__name__)

StageStatus = Literal["ok", "skipped", "failed"]
GuestFactory = Callable[[str], GuestShell]


# ── Inputs ──────────────────────────────────────────────────────


@dataclass
class SettingsAnswers:
    """The user-tunable part of the bridge config."""

    ttl_secs: int = DEFAULT_TTL_SECS
    max_image_dimension: int = DEFAULT_MAX_IMAGE_DIMENSION
    restrict_to_home: bool = True


@dataclass
class InstallOptions:
    """Everything that shapes a run, after flags and config are merged."""

    distro: str | None = None
    assume_yes: bool = False
    skip_companion: bool = False
    target: Literal["user", "system"] = "user"
    repo: str = DEFAULT_REPO
    settings: SettingsAnswers = field(default_factory=SettingsAnswers)
    sharex_config: Path | None = None
    script_path: Path | None = None
    settle_seconds: float = SETTLE_SECONDS
    wsl_exe: str | None = None

    @classmethod
    def from_config(cls, config: InstallerConfig, **overrides) -> InstallOptions:
        """Options seeded from ``wcb-setup.yml``; ``None`` overrides are ignored."""
        options = cls(
            distro=config.distro,
            target=config.target,
            repo=config.repo,
            settings=SettingsAnswers(
                ttl_secs=config.ttl_secs,
                max_image_dimension=config.max_image_dimension,
                restrict_to_home=config.restrict_to_home,
            ),
            sharex_config=config.sharex_config,
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(options, key, value)
        return options


class Prompter:
    """Answers the installer's questions.

    The base class is non-interactive: every question gets its default.
    UI adapters override the methods they can ask.
    """

    interactive = False

    def choose_instance(self, candidates: Sequence[str], default_index: int) -> str:
        return candidates[default_index]

    def ask_settings(self, defaults: SettingsAnswers) -> SettingsAnswers:
        return defaults

    def confirm_companion(self) -> bool:
        return True

    def ask_companion_config(self) -> str | None:
        return None

    def confirm_close_companion(self, count: int) -> bool:
        return True


class AutoPrompter(Prompter):
    """Unattended answers (``--yes``)."""


# ── Result ──────────────────────────────────────────────────────


@dataclass
class StageResult:
    name: str
    status: StageStatus
    detail: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "status": self.status, "detail": self.detail}


@dataclass
class InstallResult:
    """Outcome of ``run_install``."""

    stages: list[StageResult] = field(default_factory=list)
    probe: ProbeResult | None = None
    instance: str | None = None
    arch: str | None = None
    settings: AppSettings | None = None
    artifact: InstalledArtifact | None = None
    profile: PatchReport | None = None
    app_config_path: str | None = None
    companion: CompanionReport | None = None
    error: str | None = None
    hint: str | None = None
    failed_stage: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def record(self, name: str, status: StageStatus = "ok", detail: str = "") -> None:
        self.stages.append(StageResult(name, status, detail))
        logger.debug("Stage %s: %s %s", name, status, detail)

    def fail(self, name: str, exc: InstallerError) -> None:
        self.record(name, "failed", str(exc))
        self.error = str(exc)
        self.hint = exc.hint
        self.failed_stage = name

    def to_dict(self) -> dict:
        result: dict = {
            "ok": self.ok,
            "stages": [s.to_dict() for s in self.stages],
        }
        if self.error:
            result["error"] = self.error
            result["hint"] = self.hint
            result["failed_stage"] = self.failed_stage
        if self.instance:
            result["instance"] = self.instance
            result["arch"] = self.arch
        if self.settings:
            result["settings"] = self.settings.model_dump()
        if self.artifact:
            result["artifact"] = self.artifact.to_dict()
        if self.profile:
            result["profile"] = self.profile.to_dict()
        if self.app_config_path:
            result["app_config_path"] = self.app_config_path
        if self.companion:
            result["companion"] = self.companion.to_dict()
        return result


# ── Decisions ───────────────────────────────────────────────────


def decide_settings(answers: SettingsAnswers) -> AppSettings:
    """Turn prompt answers into the config to write.

    ``allowed_directories`` starts empty; the ShareX stage fills it.
    """
    settings = AppSettings(
        ttl_secs=answers.ttl_secs,
        max_image_dimension=answers.max_image_dimension,
        restrict_to_home=answers.restrict_to_home,
    )
    if settings.max_image_dimension == 0:
        logger.info("Image downscaling disabled")
    return settings


# ── Run ─────────────────────────────────────────────────────────


def run_install(
    options: InstallOptions,
    prompter: Prompter | None = None,
    guest_factory: GuestFactory | None = None,
) -> InstallResult:
    """Provision the bridge into a WSL instance and wire up ShareX.

    Args:
        options: Merged flags and config-file values.
        prompter: Source of answers; ``AutoPrompter`` when None or when
            ``options.assume_yes`` is set.
        guest_factory: Builds the guest for the chosen instance name.

    Returns:
        InstallResult. Check ``ok``; on failure ``failed_stage`` and
        ``hint`` say where and what to do.
    """
    if prompter is None or options.assume_yes:
        prompter = AutoPrompter()
    if guest_factory is None:
        def guest_factory(name: str) -> GuestShell:
            return WslGuest(name, wsl_exe=options.wsl_exe)

    result = InstallResult()
    target = INSTALL_TARGETS[options.target]
    stage = "probe"

    try:
        # ── Probe ────────────────────────────────────────────────
        found = probe(options.wsl_exe)
        result.probe = found
        result.record(stage, detail=", ".join(found.instances))

        # ── Select ───────────────────────────────────────────────
        stage = "select"
        name = select_instance(
            found.instances,
            explicit=options.distro,
            interactive=prompter.interactive,
            choose=prompter.choose_instance,
        )
        result.instance = name
        guest = guest_factory(name)
        result.record(stage, detail=name)

        stage = "architecture"
        instance = GuestInstance(name=name, architecture=probe_guest(found, guest))
        result.arch = instance.architecture
        result.record(stage, detail=result.arch)

        # ── Settings ─────────────────────────────────────────────
        stage = "settings"
        result.settings = decide_settings(prompter.ask_settings(options.settings))
        result.record(stage)

        # ── Artifact ─────────────────────────────────────────────
        stage = "artifact"
        url = build_release_url(options.repo, result.arch)
        result.artifact = install_artifact(guest, target, url)
        result.record(stage, detail=result.artifact.path)

        # ── Shell profile ────────────────────────────────────────
        stage = "shell-profile"
        if target.requires_elevation:
            result.record(stage, "skipped", f"{result.artifact.directory} is already on PATH")
        else:
            result.profile = ensure_path(guest, result.artifact.directory)
            result.record(stage, detail=f"{len(result.profile.updated)} file(s) updated")

        # ── Bridge config ────────────────────────────────────────
        stage = "app-config"
        result.app_config_path = write_app_config(guest, result.settings)
        result.record(stage, detail=result.app_config_path)

        # ── ShareX ───────────────────────────────────────────────
        stage = "sharex"
        if options.skip_companion:
            result.record(stage, "skipped", "--skip-sharex")
        elif not prompter.confirm_companion():
            result.record(stage, "skipped", "declined")
        else:
            result.companion = integrate_companion(
                guest,
                binary_path=result.artifact.path,
                app_config_path=result.app_config_path,
                confirm_close=prompter.confirm_close_companion,
                config_path=options.sharex_config,
                ask_path=prompter.ask_companion_config,
                script_path=options.script_path,
                settle_seconds=options.settle_seconds,
                restrict_to_home=result.settings.restrict_to_home,
            )
            result.record(stage, detail=f"action {result.companion.action_status}")

    except InstallerError as e:
        logger.debug("Install halted at %s", stage, exc_info=True)
        result.fail(stage, e)

    return result
