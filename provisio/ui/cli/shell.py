"""
CLI commands for the provisio stanza in the user's shell startup file.
"""

from __future__ import annotations

import sys

import click


def _modifier(ctx: click.Context):
    from provisio.core.config.loader import load_config
    from provisio.core.services.provisioning import ShellFileModifier

    config = load_config(ctx.obj.get("root"))
    return ShellFileModifier(config.home, config.root)


@click.group()
def shell() -> None:
    """Shell: add or remove the provisio stanza."""


@shell.command("update")
@click.pass_context
def update(ctx: click.Context) -> None:
    """Insert (or refresh) the stanza in the shell startup file."""
    from provisio.core.errors import ProvisioError

    try:
        path = _modifier(ctx).update_shell_initialization_file()
    except ProvisioError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    click.secho(f"✅ Updated {path}", fg="green")


@shell.command("remove")
@click.pass_context
def remove(ctx: click.Context) -> None:
    """Remove the stanza from the shell startup file."""
    from provisio.core.errors import ProvisioError

    try:
        path = _modifier(ctx).remove_from_shell_initialization_file()
    except ProvisioError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if path is None:
        click.secho("⚠️  No provisio stanza found", fg="yellow")
        return
    click.secho(f"✅ Removed stanza from {path}", fg="green")
