"""
Shared CLI plumbing — option validation, config merging, failure exit.
"""

from __future__ import annotations

import sys

import click

from clip_bridge_setup.core.config.loader import load_installer_config
from clip_bridge_setup.core.errors import InstallerError
from clip_bridge_setup.core.models.guest import is_valid_identifier
from clip_bridge_setup.core.use_cases.install import InstallOptions


def validate_distro(ctx: click.Context, param: click.Parameter, value: str | None) -> str | None:
    """Reject distribution names outside ``[A-Za-z0-9_-]`` before anything runs."""
    if value is not None and not is_valid_identifier(value):
        raise click.BadParameter(
            f"{value!r} may only contain letters, digits, '_' and '-'."
        )
    return value


distro_option = click.option(
    "--distro",
    "-d",
    default=None,
    callback=validate_distro,
    help="WSL distribution to use (default: ask, or the only one).",
)


def fail(ctx: click.Context, error: str, hint: str | None = None, *, attended: bool = True) -> None:
    """Print the cause and remedy, wait for a key when attended, exit 1."""
    click.secho(f"❌ {error}", fg="red", err=True)
    if hint:
        click.secho(f"   → {hint}", fg="yellow", err=True)
    if attended and not ctx.obj.get("assume_yes"):
        click.pause(err=True)
    sys.exit(1)


def build_options(ctx: click.Context, **overrides) -> InstallOptions:
    """Merge ``wcb-setup.yml`` (or ``--config``) with command-line flags."""
    try:
        config = load_installer_config(ctx.obj.get("config_path"))
    except InstallerError as e:
        fail(ctx, str(e), e.hint)
    return InstallOptions.from_config(config, **overrides)
