"""
Terminal prompts — the interactive side of the installer's questions.
"""

from __future__ import annotations

from collections.abc import Sequence

import click

from clip_bridge_setup.core.use_cases.install import Prompter, SettingsAnswers


class ClickPrompter(Prompter):
    """Asks each question on the terminal, defaults preselected."""

    interactive = True

    def choose_instance(self, candidates: Sequence[str], default_index: int) -> str:
        click.secho("\n🐧 WSL distributions:", fg="cyan", bold=True)
        for i, name in enumerate(candidates, start=1):
            marker = "  (default)" if i - 1 == default_index else ""
            click.echo(f"   {i}. {name}{marker}")
        choice = click.prompt(
            "Install into",
            type=click.IntRange(1, len(candidates)),
            default=default_index + 1,
        )
        return candidates[choice - 1]

    def ask_settings(self, defaults: SettingsAnswers) -> SettingsAnswers:
        click.secho("\n⚙️  Bridge settings", fg="cyan", bold=True)
        ttl = click.prompt(
            "Seconds a copied image stays available",
            type=click.IntRange(1, 86_400),
            default=defaults.ttl_secs,
        )
        dimension = click.prompt(
            "Maximum image dimension in pixels (0 = never downscale)",
            type=click.IntRange(0, 10_000),
            default=defaults.max_image_dimension,
        )
        restrict = click.confirm(
            "Only allow files under your WSL home directory",
            default=defaults.restrict_to_home,
        )
        return SettingsAnswers(
            ttl_secs=ttl,
            max_image_dimension=dimension,
            restrict_to_home=restrict,
        )

    def confirm_companion(self) -> bool:
        return click.confirm("\nConfigure ShareX to copy captures to the WSL clipboard?", default=True)

    def ask_companion_config(self) -> str | None:
        answer = click.prompt(
            "ShareX settings not found. Path to ApplicationConfig.json (empty to skip)",
            default="",
            show_default=False,
        )
        return answer or None

    def confirm_close_companion(self, count: int) -> bool:
        noun = "process" if count == 1 else "processes"
        click.secho(
            f"⚠️  ShareX is running ({count} {noun}) and would overwrite the change when it exits.",
            fg="yellow",
        )
        return click.confirm("Close ShareX now?", default=False)
