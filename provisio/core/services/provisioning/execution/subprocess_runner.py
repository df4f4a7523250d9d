"""
L4 Execution: core subprocess runner.

The single place where ``subprocess.run`` is called by the engine.
Timeouts, output capture and logging are handled here; callers turn
the result dict into domain errors.
"""

from __future__ import annotations

import logging
import subprocess
import time
from typing import Any

logger = logging.getLogger(__name__)

# Keep at most this much of stdout/stderr in results
_TAIL = 2000


def _run_subprocess(
    cmd: list[str],
    *,
    timeout: int = 120,
    cwd: str | None = None,
) -> dict[str, Any]:
    """Run ``cmd`` and capture its output.

    Args:
        cmd: Command list for ``subprocess.run()``.
        timeout: Seconds before the process is killed.
        cwd: Working directory for the command.

    Returns:
        ``{"ok": True, "stdout": "...", "elapsed_ms": N}`` on success,
        ``{"ok": False, "error": "...", "returncode": N, ...}`` on failure.
    """
    logger.debug("Running %s (cwd=%s)", cmd, cwd)
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"Command timed out ({timeout}s)", "returncode": None}
    except OSError as e:
        logger.warning("Cannot start %s: %s", cmd, e)
        return {"ok": False, "error": str(e), "returncode": None}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = result.stdout[-_TAIL:] if result.stdout else ""

    if result.returncode == 0:
        return {"ok": True, "stdout": stdout, "elapsed_ms": elapsed_ms}

    return {
        "ok": False,
        "error": f"Command failed (exit {result.returncode})",
        "returncode": result.returncode,
        "stderr": result.stderr[-_TAIL:] if result.stderr else "",
        "stdout": stdout,
        "elapsed_ms": elapsed_ms,
    }
