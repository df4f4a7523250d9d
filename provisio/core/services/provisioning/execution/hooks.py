"""
L4 Execution: per-tool post-install hooks.

A tool may ship ``tools/<id>/post-install.sh``. After each provision of
that tool the script runs under bash with a fixed positional contract:

    $0   the hook's own path
    $1   shared shell-function library (libexec/provisio-functions.bash)
    $2   active profile spec (profiles/<name>/profile.yaml)
    $3   profile binary directory
    $4   reserved ("filename")
    $5   reserved ("url")
    $6   requested version
    $7   tool id
    $8   installation path
    $9   OS name, mapped through the descriptor
    $10  architecture name, mapped through the descriptor
    $11  installs root
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from provisio.core.config.loader import DEFAULT_HOOK_TIMEOUT
from provisio.core.errors import PostInstallError
from provisio.core.services.provisioning.data.constants import POST_INSTALL
from provisio.core.services.provisioning.execution.subprocess_runner import _run_subprocess

logger = logging.getLogger(__name__)

# $4 and $5 hold their place in the argument vector
_RESERVED_FILENAME = "filename"
_RESERVED_URL = "url"


@dataclass(frozen=True)
class HookContext:
    """Everything a hook is told about the provision that just happened."""

    functions_library: Path
    profile_spec: Path
    profile_bin_dir: Path
    version: str
    tool_id: str
    installation: Path
    os_name: str
    arch: str
    installs_dir: Path


def hook_path(tool_dir: Path) -> Path:
    return tool_dir / POST_INSTALL


def hook_arguments(script: Path, ctx: HookContext) -> list[str]:
    """The positional argument vector, starting with the script itself."""
    return [
        str(script.absolute()),
        str(ctx.functions_library.absolute()),
        str(ctx.profile_spec.absolute()),
        str(ctx.profile_bin_dir),
        _RESERVED_FILENAME,
        _RESERVED_URL,
        ctx.version,
        ctx.tool_id,
        str(ctx.installation.absolute()),
        ctx.os_name,
        ctx.arch,
        str(ctx.installs_dir.absolute()),
    ]


def run_post_install(tool_dir: Path, ctx: HookContext, *, timeout: int = DEFAULT_HOOK_TIMEOUT) -> bool:
    """Run the tool's post-install hook if it has one.

    Returns:
        True if a hook ran, False if the tool has none.

    Raises:
        PostInstallError: The hook exited non-zero, timed out, or could not start.
    """
    script = hook_path(tool_dir)
    if not script.is_file():
        return False

    logger.info("Running post-install hook for %s %s", ctx.tool_id, ctx.version)
    result = _run_subprocess(
        ["bash", *hook_arguments(script, ctx)],
        timeout=timeout,
        cwd=str(tool_dir),
    )
    if not result["ok"]:
        detail = result.get("stderr", "").strip()
        message = f"Post-install hook {script} failed: {result['error']}"
        if detail:
            message = f"{message}: {detail.splitlines()[-1]}"
        raise PostInstallError(message, tool=ctx.tool_id, version=ctx.version)

    if result.get("stdout"):
        logger.debug("post-install %s: %s", ctx.tool_id, result["stdout"].strip())
    return True
