"""
L4 Execution: exclusive advisory file locks.

The active-profile link, the current-profile marker, the init script and
the user's shell startup file are single shared slots. Every writer takes
an exclusive lock on a sibling lock file first.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO

logger = logging.getLogger(__name__)


def _lock_exclusive(fd: IO[str]) -> None:
    """Acquire an exclusive lock, blocking if another process holds it."""
    if sys.platform == "win32":
        import msvcrt

        msvcrt.locking(fd.fileno(), msvcrt.LK_LOCK, 1)
    else:
        import fcntl

        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            logger.info("Waiting for lock %s", fd.name)
            fcntl.flock(fd, fcntl.LOCK_EX)


def _unlock(fd: IO[str]) -> None:
    if sys.platform == "win32":
        import msvcrt

        msvcrt.locking(fd.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl

        fcntl.flock(fd, fcntl.LOCK_UN)


@contextmanager
def exclusive_lock(lock_path: Path) -> Iterator[None]:
    """Hold an exclusive lock on ``lock_path`` for the duration of the block.

    The lock file is created if needed and left in place afterwards.
    """
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with open(lock_path, "a+", encoding="utf-8") as fd:
        _lock_exclusive(fd)
        try:
            yield
        finally:
            _unlock(fd)
