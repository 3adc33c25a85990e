"""
CLI commands for ShareX.

Thin wrappers over ``clip_bridge_setup.core.use_cases.sharex``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from clip_bridge_setup.ui.cli.common import build_options, distro_option, fail


@click.group()
def sharex() -> None:
    """ShareX integration — action, companion script, allowed folders."""


@sharex.command()
@distro_option
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Answer every prompt with its default.")
@click.option(
    "--sharex-config",
    type=click.Path(dir_okay=True, path_type=Path),
    default=None,
    help="ApplicationConfig.json or the ShareX folder holding it.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def configure(
    ctx: click.Context,
    distro: str | None,
    assume_yes: bool,
    sharex_config: Path | None,
    as_json: bool,
) -> None:
    """Register the bridge action in ShareX for an existing install.

    ShareX must be closed; you are asked before it is closed for you.
    A timestamped backup of ApplicationConfig.json is kept beside it.
    """
    from clip_bridge_setup.core.use_cases.sharex import run_sharex_configure
    from clip_bridge_setup.ui.cli.prompts import ClickPrompter

    ctx.obj["assume_yes"] = assume_yes or as_json
    options = build_options(
        ctx, distro=distro, assume_yes=ctx.obj["assume_yes"], sharex_config=sharex_config,
    )
    result = run_sharex_configure(options, ClickPrompter())

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if not result.ok:
        fail(ctx, result.error, result.hint)

    report = result.companion
    assert report is not None
    click.secho(f"✅ ShareX action {report.action_status}", fg="green", bold=True)
    click.echo(f"   Settings: {report.config_path}")
    click.echo(f"   Backup:   {report.backup_path}")
    click.echo(f"   Script:   {report.script_path}")
    if report.allowed_added:
        click.echo(f"   Allowed:  {', '.join(report.allowed_added)}")


@sharex.command()
@distro_option
@click.pass_context
def script(ctx: click.Context, distro: str | None) -> None:
    """Print the batch file ShareX runs after a capture."""
    from clip_bridge_setup.core.use_cases.sharex import run_sharex_script
    from clip_bridge_setup.ui.cli.prompts import ClickPrompter

    ctx.obj["assume_yes"] = False
    options = build_options(ctx, distro=distro)
    result = run_sharex_script(options, ClickPrompter())

    if not result.ok:
        fail(ctx, result.error, result.hint)

    click.echo(result.script, nl=False)
