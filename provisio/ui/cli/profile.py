"""
CLI commands for profiles: provision, activate, show the current one.
"""

from __future__ import annotations

import json
import sys

import click


@click.group()
def profile() -> None:
    """Profiles: provision, activate, current."""


@profile.command("provision")
@click.option("--profile", "profile_name", default=None, help="Profile name (default: current profile).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def provision(ctx: click.Context, profile_name: str | None, as_json: bool) -> None:
    """Install every tool in a profile and regenerate its init script."""
    from provisio.core.config.loader import load_config
    from provisio.core.errors import ProvisioError
    from provisio.core.services.provisioning import (
        ProfileProvisioner,
        current_profile,
        load_catalog,
    )

    try:
        config = load_config(ctx.obj.get("root"))
        name = profile_name or current_profile(config)
        provisioner = ProfileProvisioner(config, load_catalog(config.tools_dir), profile=name)
        result = provisioner.provision_profile()
    except ProvisioError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    click.secho(f"\n📋 Profile: {result.profile}", fg="cyan", bold=True)
    for t in result.tools:
        marker = "✓" if t.cached else "⬇"
        click.secho(f"   {marker} {t.tool_id} ", fg="green", nl=False)
        click.echo(f"{t.version}  → {t.installation}")
    click.echo()
    if result.init_script:
        click.echo(f"   📝 {result.init_script}")
    if result.shell_file and not ctx.obj.get("quiet"):
        click.echo(f"   🐚 {result.shell_file}")
    click.echo()


@profile.command("activate")
@click.argument("name")
@click.pass_context
def activate(ctx: click.Context, name: str) -> None:
    """Make NAME the active profile for new shells."""
    from provisio.core.config.loader import load_config
    from provisio.core.errors import ProvisioError
    from provisio.core.services.provisioning import ProfileProvisioner

    try:
        config = load_config(ctx.obj.get("root"))
        link = ProfileProvisioner(config, {}, profile=name).activate()
    except ProvisioError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    click.secho(f"✅ Active profile: {name}", fg="green", bold=True)
    click.echo(f"   🔗 {link}")


@profile.command("current")
@click.pass_context
def current(ctx: click.Context) -> None:
    """Print the current profile name."""
    from provisio.core.config.loader import load_config
    from provisio.core.errors import ProvisioError
    from provisio.core.services.provisioning import current_profile

    try:
        config = load_config(ctx.obj.get("root"))
    except ProvisioError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    click.echo(current_profile(config))
