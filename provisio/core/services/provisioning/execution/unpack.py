"""
L4 Execution: installation strategies.

Turns a cached artifact into an installation directory, dispatched on
``Packaging``:

    RAW          copy to ``<dest>/<executable>`` and mark it executable
    TARGZ        extract, keeping the archive's top-level directory
    TARGZ_STRIP  extract, dropping one leading path component
    ZIP          extract, keeping structure
    ZIP_JUNK     extract every file directly into ``<dest>``

Every strategy works in a hidden staging directory beside ``<dest>``
that is renamed into place only when it completed. The provisioner
treats the existence of ``<dest>`` as "installed", so a half-extracted
directory must never appear there.

ZIP_JUNK flattening is last-write-wins: two entries with the same base
name collapse into one file holding the later entry's bytes.
"""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
import tempfile
import zipfile
from collections.abc import Callable
from pathlib import Path

from provisio.core.errors import (
    InstallError,
    ProvisioError,
    UnsupportedPackagingError,
)
from provisio.core.models.descriptor import Packaging

logger = logging.getLogger(__name__)


def _split_entry(name: str) -> list[str]:
    """Raw ``/``-separated components of an archive entry name, ``.`` included.

    Raises:
        InstallError: If the entry is absolute or climbs out with ``..``.
    """
    raw = name.replace("\\", "/")
    parts = raw.split("/")
    if raw.startswith("/") or ".." in parts:
        raise InstallError(f"Archive entry escapes the installation directory: {name!r}")
    return parts


def _normalise(parts: list[str]) -> tuple[str, ...]:
    return tuple(p for p in parts if p not in ("", "."))


def _entry_parts(name: str) -> tuple[str, ...]:
    """Path components of an archive entry name, without ``.`` or empty parts."""
    return _normalise(_split_entry(name))


def _strip_one(name: str) -> str | None:
    """``root/a/b`` → ``a/b``, ``./a/b`` → ``a/b``; None when nothing is left."""
    parts = _normalise(_split_entry(name)[1:])
    return "/".join(parts) if parts else None


# ── Strategies ──────────────────────────────────────────────────


def _install_raw(artifact: Path, staging: Path, executable: str) -> None:
    target = staging / executable
    shutil.copy2(artifact, target)
    os.chmod(target, 0o755)


def _extract_tar(artifact: Path, staging: Path, *, strip: bool) -> None:
    with tarfile.open(artifact, "r:*") as tar:
        members: list[tarfile.TarInfo] = []
        for member in tar.getmembers():
            if strip:
                name = _strip_one(member.name)
                if name is None:
                    continue
                member.name = name
                if member.islnk():
                    # hard links point at other (now renamed) members
                    link = _strip_one(member.linkname)
                    if link is None:
                        continue
                    member.linkname = link
            else:
                if not _entry_parts(member.name):
                    continue
            members.append(member)
        tar.extractall(staging, members=members, filter="data")
    logger.debug("Extracted %d tar entries into %s", len(members), staging)


def _extract_zip(artifact: Path, staging: Path, *, junk: bool) -> None:
    count = 0
    with zipfile.ZipFile(artifact) as zf:
        for info in zf.infolist():
            parts = _entry_parts(info.filename)
            if not parts:
                continue
            if info.is_dir():
                if not junk:
                    (staging.joinpath(*parts)).mkdir(parents=True, exist_ok=True)
                continue
            target = staging / parts[-1] if junk else staging.joinpath(*parts)
            target.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(info) as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)
            # unix permission bits live in the high word
            mode = (info.external_attr >> 16) & 0o777
            if mode:
                os.chmod(target, mode)
            count += 1
    logger.debug("Extracted %d zip entries into %s", count, staging)


_STRATEGIES: dict[Packaging, Callable[[Path, Path, str], None]] = {
    Packaging.RAW: _install_raw,
    Packaging.TARGZ: lambda a, s, _e: _extract_tar(a, s, strip=False),
    Packaging.TARGZ_STRIP: lambda a, s, _e: _extract_tar(a, s, strip=True),
    Packaging.ZIP: lambda a, s, _e: _extract_zip(a, s, junk=False),
    Packaging.ZIP_JUNK: lambda a, s, _e: _extract_zip(a, s, junk=True),
}


def install(
    artifact: Path,
    packaging: Packaging,
    destination: Path,
    *,
    executable: str = "",
) -> None:
    """Produce ``destination`` from ``artifact`` using the ``packaging`` strategy.

    Args:
        artifact: Cached download.
        packaging: Strategy selector.
        destination: Installation directory; must not exist yet.
        executable: File name for RAW installs.

    Raises:
        UnsupportedPackagingError: No strategy for ``packaging``.
        InstallError: Extraction or copy failed. ``destination`` is not created.
    """
    try:
        packaging = Packaging(packaging)
    except ValueError:
        raise UnsupportedPackagingError(f"Unsupported packaging '{packaging}'") from None
    strategy = _STRATEGIES.get(packaging)
    if strategy is None:
        raise UnsupportedPackagingError(f"Unsupported packaging '{packaging.value}'")
    if packaging is Packaging.RAW and not executable:
        raise InstallError("RAW packaging needs an executable name")
    if destination.exists():
        raise InstallError(f"Installation directory already exists: {destination}")

    destination.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(dir=destination.parent, prefix=f".{destination.name}.", suffix=".partial"))
    logger.info("Installing %s (%s) into %s", artifact.name, packaging.value, destination)
    try:
        strategy(artifact, staging, executable)
        # mkdtemp creates 0700
        os.chmod(staging, 0o755)
        os.rename(staging, destination)
    except ProvisioError:
        shutil.rmtree(staging, ignore_errors=True)
        raise
    except (OSError, tarfile.TarError, zipfile.BadZipFile, EOFError, ValueError) as e:
        shutil.rmtree(staging, ignore_errors=True)
        raise InstallError(f"Failed to install {artifact.name} into {destination}: {e}") from e
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise
