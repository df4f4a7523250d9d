"""
L4 Execution: the provisio stanza in the user's shell startup file.

A two-state machine over one text file:

    NoStanza  --insert-->  HasStanza
    HasStanza --remove-->  NoStanza

``update`` is remove-then-insert, so the stanza appears exactly once no
matter how often it runs. The stanza is three lines (begin marker, a
line sourcing the active profile's init script, end marker) prepended to
the file. The first run also copies the untouched file to
``<file>.provisio_backup``; later runs never overwrite that backup.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from provisio.core.config.loader import DEFAULT_ROOT_NAME
from provisio.core.errors import ShellFileError
from provisio.core.persistence.atomic import write_text_atomic
from provisio.core.services.provisioning.data.constants import (
    ACTIVE_PROFILE_LINK,
    BEGIN_PROVISIO_STANZA,
    END_PROVISIO_STANZA,
    INIT_SCRIPT,
    PROVISIO_STANZA_BODY,
    SHELL_FILE_BACKUP_SUFFIX,
    SHELL_FILE_LOCK_SUFFIX,
    SHELL_INIT_CANDIDATES,
)
from provisio.core.services.provisioning.execution.locking import exclusive_lock

logger = logging.getLogger(__name__)


def stanza_body(home: Path, provisio_root: Path) -> str:
    """The sourcing line for ``provisio_root``.

    Roots under ``home`` are written relative to ``${HOME}`` so the
    startup file survives a moved home directory.
    """
    if provisio_root == home / DEFAULT_ROOT_NAME:
        return PROVISIO_STANZA_BODY
    try:
        root = "${HOME}/" + provisio_root.relative_to(home).as_posix()
    except ValueError:
        root = provisio_root.absolute().as_posix()
    init = f"{root}/bin/profiles/{ACTIVE_PROFILE_LINK}/{INIT_SCRIPT}"
    return f"[ -f {init} ] && source {init}"


class ShellFileModifier:
    """Maintains the provisio stanza in one of the user's shell startup files."""

    def __init__(self, home: Path, provisio_root: Path) -> None:
        self.home = home
        self.provisio_root = provisio_root
        self.body = stanza_body(home, provisio_root)

    # ── Pure transitions ────────────────────────────────────────

    def insert_provisio_stanza(self, content: str) -> str:
        """Prepend the stanza to ``content``."""
        return f"{BEGIN_PROVISIO_STANZA}\n{self.body}\n{END_PROVISIO_STANZA}\n{content}"

    def remove_provisio_stanza(self, content: str) -> str:
        """Drop every line from a begin marker through its end marker.

        Everything else is kept byte-for-byte and in order. A begin
        marker with no matching end marker is left alone.
        """
        kept: list[str] = []
        pending: list[str] = []
        inside = False
        for line in content.splitlines(keepends=True):
            marker = line.rstrip("\r\n")
            if not inside and marker == BEGIN_PROVISIO_STANZA:
                inside = True
                pending = [line]
            elif inside:
                pending.append(line)
                if marker == END_PROVISIO_STANZA:
                    inside = False
                    pending = []
            else:
                kept.append(line)
        if inside:
            logger.warning("Unterminated provisio stanza left untouched")
            kept.extend(pending)
        return "".join(kept)

    # ── File operations ─────────────────────────────────────────

    def find_shell_initialization_file(self) -> Path:
        """First existing candidate in ``SHELL_INIT_CANDIDATES``, else the first candidate."""
        for name in SHELL_INIT_CANDIDATES:
            candidate = self.home / name
            if candidate.is_file():
                return candidate
        return self.home / SHELL_INIT_CANDIDATES[0]

    def backup_path(self, shell_file: Path) -> Path:
        return shell_file.with_name(shell_file.name + SHELL_FILE_BACKUP_SUFFIX)

    def update_shell_initialization_file(self) -> Path:
        """Make the startup file contain exactly one current stanza.

        Returns:
            The shell file that was updated.

        Raises:
            ShellFileError: If the file cannot be read or written.
        """
        shell_file = self.find_shell_initialization_file()
        with exclusive_lock(self._lock_path(shell_file)):
            content = self._read(shell_file)
            self._backup_once(shell_file)
            updated = self.insert_provisio_stanza(self.remove_provisio_stanza(content))
            if updated != content:
                self._write(shell_file, updated)
                logger.info("Updated provisio stanza in %s", shell_file)
            else:
                logger.debug("Provisio stanza in %s already current", shell_file)
        return shell_file

    def remove_from_shell_initialization_file(self) -> Path | None:
        """Remove the stanza from the startup file, if present.

        Returns:
            The shell file that was changed, or None if there was nothing to remove.
        """
        shell_file = self.find_shell_initialization_file()
        if not shell_file.is_file():
            return None
        with exclusive_lock(self._lock_path(shell_file)):
            content = self._read(shell_file)
            updated = self.remove_provisio_stanza(content)
            if updated == content:
                return None
            self._write(shell_file, updated)
        logger.info("Removed provisio stanza from %s", shell_file)
        return shell_file

    # ── Helpers ─────────────────────────────────────────────────

    def _lock_path(self, shell_file: Path) -> Path:
        return shell_file.with_name(shell_file.name + SHELL_FILE_LOCK_SUFFIX)

    def _read(self, shell_file: Path) -> str:
        if not shell_file.exists():
            return ""
        try:
            return shell_file.read_text(encoding="utf-8")
        except OSError as e:
            raise ShellFileError(f"Cannot read {shell_file}: {e}") from e

    def _backup_once(self, shell_file: Path) -> None:
        backup = self.backup_path(shell_file)
        if not shell_file.is_file() or backup.exists():
            return
        try:
            shutil.copy2(shell_file, backup)
        except OSError as e:
            raise ShellFileError(f"Cannot back up {shell_file}: {e}") from e
        logger.info("Backed up %s → %s", shell_file, backup)

    def _write(self, shell_file: Path, content: str) -> None:
        try:
            # write through symlinked startup files
            write_text_atomic(shell_file.resolve(), content)
        except OSError as e:
            raise ShellFileError(f"Cannot write {shell_file}: {e}") from e
