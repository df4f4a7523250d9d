"""
CLI commands for the tool catalog.

Thin wrappers over ``provisio.core.services.provisioning``.
"""

from __future__ import annotations

import json
import sys

import click


@click.group()
def tool() -> None:
    """Tools: list the catalog, install one tool."""


@tool.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_tools(ctx: click.Context, as_json: bool) -> None:
    """List every tool descriptor in the catalog."""
    from provisio.core.config.loader import load_config
    from provisio.core.errors import ProvisioError
    from provisio.core.services.provisioning import load_catalog

    try:
        config = load_config(ctx.obj.get("root"))
        catalog = load_catalog(config.tools_dir)
    except ProvisioError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(
            [
                {
                    "id": d.id,
                    "default_version": d.default_version,
                    "packaging": d.packaging.value,
                    "layout": d.layout.value,
                }
                for d in catalog.values()
            ],
            indent=2,
        ))
        return

    if not catalog:
        click.secho(f"⚠️  No tools in {config.tools_dir}", fg="yellow")
        return

    click.secho(f"🧰 Tools ({len(catalog)}):", fg="cyan", bold=True)
    for d in catalog.values():
        version = d.default_version or "-"
        click.echo(f"   {d.id:<24} {version:<12} {d.packaging.value:<12} {d.layout.value}")
    click.echo()


@tool.command("install")
@click.argument("tool_id")
@click.option("--version", "version", default=None, help="Version (default: the descriptor's defaultVersion).")
@click.option("--profile", "profile_name", default=None, help="Profile to link into (default: current profile).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install_tool(
    ctx: click.Context,
    tool_id: str,
    version: str | None,
    profile_name: str | None,
    as_json: bool,
) -> None:
    """Install one tool version and link it into a profile."""
    from provisio.core.config.loader import load_config
    from provisio.core.errors import ProvisioError
    from provisio.core.services.provisioning import (
        ToolProvisioner,
        current_profile,
        load_catalog,
    )

    try:
        config = load_config(ctx.obj.get("root"))
        provisioner = ToolProvisioner(
            config,
            load_catalog(config.tools_dir),
            profile=profile_name or current_profile(config),
        )
        result = provisioner.provision_tool(tool_id, version)
    except ProvisioError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.cached:
        click.secho(f"✅ {result.tool_id} {result.version} already installed", fg="green")
    else:
        click.secho(f"✅ Installed {result.tool_id} {result.version}", fg="green", bold=True)
    click.echo(f"   📁 {result.installation}")
    if result.link:
        click.echo(f"   🔗 {result.link}")
    for path in result.paths:
        click.echo(f"   ➕ {path.as_posix()}")
