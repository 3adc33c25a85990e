"""
WSL Clip Bridge Setup — CLI entrypoint.

Usage:
    clip-bridge-setup --help
    clip-bridge-setup install
    clip-bridge-setup install --distro Ubuntu --yes
    clip-bridge-setup probe --json
    clip-bridge-setup sharex configure
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from clip_bridge_setup import __version__
from clip_bridge_setup.core.observability.logging_config import setup_logging
from clip_bridge_setup.ui.cli.common import build_options, distro_option, fail

_STAGE_ICONS = {"ok": ("✓", "green"), "skipped": ("–", "yellow"), "failed": ("✗", "red")}


@click.group()
@click.version_option(version=__version__, prog_name="clip-bridge-setup")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Installer defaults file (default: ./wcb-setup.yml if present).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """WSL Clip Bridge Setup — install the clipboard bridge into WSL and wire up ShareX."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("WCB_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("WCB_LOG_FILE"),
        log_file_level=os.environ.get("WCB_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


@cli.command()
@distro_option
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Unattended: answer every prompt with its default.")
@click.option("--skip-sharex", is_flag=True, help="Do not touch ShareX.")
@click.option("--system", "system_wide", is_flag=True, help="Install to /usr/local/bin (as root).")
@click.option("--repo", default=None, help="GitHub repository publishing the binary (owner/name).")
@click.option(
    "--sharex-config",
    type=click.Path(dir_okay=True, path_type=Path),
    default=None,
    help="ApplicationConfig.json or the ShareX folder holding it.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    distro: str | None,
    assume_yes: bool,
    skip_sharex: bool,
    system_wide: bool,
    repo: str | None,
    sharex_config: Path | None,
    as_json: bool,
) -> None:
    """Install the bridge binary into a WSL distribution.

    Downloads the release for the distribution's CPU, verifies its
    published SHA-256, installs it, puts it on PATH, writes its config
    and registers it as a ShareX after-capture action.

    Examples:

        clip-bridge-setup install

        clip-bridge-setup install --distro Ubuntu --yes --skip-sharex
    """
    from clip_bridge_setup.core.use_cases.install import run_install
    from clip_bridge_setup.ui.cli.prompts import ClickPrompter

    if repo is not None:
        owner, sep, name = repo.partition("/")
        if not (owner and sep and name) or "/" in name:
            raise click.BadParameter("must look like 'owner/name'.", param_hint="--repo")

    ctx.obj["assume_yes"] = assume_yes or as_json
    options = build_options(
        ctx,
        distro=distro,
        assume_yes=ctx.obj["assume_yes"],
        skip_companion=skip_sharex,
        target="system" if system_wide else None,
        repo=repo,
        sharex_config=sharex_config,
    )
    result = run_install(options, ClickPrompter())

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if not ctx.obj.get("quiet"):
        click.echo()
        for stage in result.stages:
            icon, color = _STAGE_ICONS[stage.status]
            click.secho(f"   {icon} {stage.name:<14}", fg=color, nl=False)
            click.echo(f" {stage.detail}")
        click.echo()

    if not result.ok:
        fail(ctx, result.error, result.hint)

    assert result.artifact is not None
    click.secho(f"✅ Installed into {result.instance}", fg="green", bold=True)
    click.echo(f"   Binary: {result.artifact.path}")
    if not result.artifact.verified:
        click.secho("   ⚠️  No published checksum; the download was not verified.", fg="yellow")
    click.echo(f"   Config: {result.app_config_path}")
    if result.profile and result.profile.updated:
        click.echo("   Open a new WSL shell to pick up the PATH change.")
    if result.companion:
        click.echo(f"   ShareX backup: {result.companion.backup_path}")
        click.echo("   Start ShareX again; captures now reach the WSL clipboard.")
    click.echo()


@cli.command()
@distro_option
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def probe(ctx: click.Context, distro: str | None, as_json: bool) -> None:
    """Show WSL distributions and CPU architectures."""
    from clip_bridge_setup.core.use_cases.status import get_status

    result = get_status(distro=distro)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        fail(ctx, result.error, result.hint, attended=False)

    found = result.probe
    assert found is not None
    click.secho("\n🐧 WSL distributions", fg="cyan", bold=True)
    for name in found.instances:
        click.echo(f"   • {name}")
    for name in found.skipped:
        click.secho(f"   • {name} (ignored)", dim=True)
    click.echo(f"\n   Host CPU: {found.host_arch or 'unsupported'}")
    if result.distro:
        click.echo(f"   {result.distro}: {result.arch}")
    click.echo()


# ── Sub-command groups ──────────────────────────────────────────

from clip_bridge_setup.ui.cli.sharex import sharex  # noqa: E402

cli.add_command(sharex)


if __name__ == "__main__":
    cli()
