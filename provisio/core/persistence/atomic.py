"""
Atomic file writes: write to a temp file beside the target, then rename.

Used for every machine-owned text file (the generated init script, the
current-profile marker, the rewritten shell startup file) so that a
crash mid-write never leaves a truncated file behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def write_text_atomic(path: Path, content: str, *, mode: int | None = None) -> None:
    """Replace ``path`` with ``content`` atomically.

    Args:
        path: Target file. Parent directories are created.
        content: Full new contents.
        mode: Optional permission bits; when None an existing file's mode
            is preserved.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    if mode is None and path.is_file():
        mode = path.stat().st_mode & 0o7777

    fd, tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}_",
        suffix=".tmp",
    )
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        if mode is not None:
            os.chmod(tmp, mode)
        os.replace(tmp, path)
        logger.debug("Wrote %s", path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
