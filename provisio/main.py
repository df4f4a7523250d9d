"""
provisio: CLI entrypoint.

Usage:
    python -m provisio.main --help
    python -m provisio.main tool list
    python -m provisio.main profile provision
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from provisio import __version__
from provisio.core.observability.logging_config import (
    FILE_ENV_VAR,
    FILE_LEVEL_ENV_VAR,
    resolve_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="provisio")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--root",
    "root",
    type=click.Path(file_okay=False),
    default=None,
    help="Provisio root directory (default: $PROVISIO_ROOT or ~/.provisio).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    root: str | None,
) -> None:
    """provisio: install developer tools into reproducible shell profiles."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["root"] = Path(root) if root else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(FILE_ENV_VAR),
        log_file_level=os.environ.get(FILE_LEVEL_ENV_VAR),
        quiet_third_party=not debug,
    )


# ── Register sub-command groups from provisio/ui/cli/ ───────────

from provisio.ui.cli.profile import profile  # noqa: E402
from provisio.ui.cli.shell import shell  # noqa: E402
from provisio.ui.cli.tool import tool  # noqa: E402

cli.add_command(tool)
cli.add_command(profile)
cli.add_command(shell)


if __name__ == "__main__":
    cli()
