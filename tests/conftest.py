"""
Shared test fixtures: an isolated provisio root with a catalog,
profiles and fake artifacts served through ``file://`` URLs.
"""

from __future__ import annotations

import io
import stat
import tarfile
import zipfile
from pathlib import Path

import pytest
import yaml

from provisio.core.config.loader import ProvisioConfig, load_config


@pytest.fixture
def home(tmp_path: Path, monkeypatch) -> Path:
    """A fake home directory; ``$HOME`` points at it."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("PROVISIO_ROOT", raising=False)
    return home


@pytest.fixture
def root(home: Path) -> Path:
    """``~/.provisio`` with empty ``tools/`` and ``profiles/``."""
    root = home / ".provisio"
    (root / "tools").mkdir(parents=True)
    (root / "profiles").mkdir()
    return root


@pytest.fixture
def config(root: Path, home: Path) -> ProvisioConfig:
    return load_config(root, home=home)


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    """Directory standing in for a download server."""
    path = tmp_path / "artifacts"
    path.mkdir()
    return path


@pytest.fixture
def write_descriptor(root: Path):
    """Write ``tools/<tool_id>/descriptor.yml`` from keyword fields."""

    def _write(tool_id: str, **fields) -> Path:
        tool_dir = root / "tools" / tool_id
        tool_dir.mkdir(parents=True, exist_ok=True)
        path = tool_dir / "descriptor.yml"
        path.write_text(yaml.safe_dump({"id": tool_id, **fields}, sort_keys=False))
        return path

    return _write


@pytest.fixture
def write_profile(root: Path):
    """Write ``profiles/<name>/profile.yaml`` from a tools mapping."""

    def _write(name: str, tools: dict) -> Path:
        profile_dir = root / "profiles" / name
        profile_dir.mkdir(parents=True, exist_ok=True)
        path = profile_dir / "profile.yaml"
        path.write_text(yaml.safe_dump({"tools": tools}, sort_keys=False))
        return path

    return _write


@pytest.fixture
def make_tar():
    """Build a .tar.gz from ``{name: bytes}``; names ending in ``/`` are directories."""

    def _make(path: Path, entries: dict[str, bytes], mode: int = 0o755) -> Path:
        with tarfile.open(path, "w:gz") as tar:
            for name, data in entries.items():
                info = tarfile.TarInfo(name.rstrip("/"))
                if name.endswith("/"):
                    info.type = tarfile.DIRTYPE
                    info.mode = 0o755
                    tar.addfile(info)
                else:
                    info.size = len(data)
                    info.mode = mode
                    tar.addfile(info, io.BytesIO(data))
        return path

    return _make


@pytest.fixture
def make_zip():
    """Build a .zip from ``{name: bytes}``, in insertion order."""

    def _make(path: Path, entries: dict[str, bytes], mode: int = 0o644) -> Path:
        with zipfile.ZipFile(path, "w") as zf:
            for name, data in entries.items():
                info = zipfile.ZipInfo(name)
                info.external_attr = (stat.S_IFREG | mode) << 16
                zf.writestr(info, data)
        return path

    return _make


@pytest.fixture
def foo_tool(artifacts_dir: Path, make_tar, write_descriptor):
    """``foo``: TARGZ_STRIP, file layout, artifacts for 1.0 and 2.0."""
    for version in ("1.0", "2.0"):
        make_tar(
            artifacts_dir / f"foo-{version}.tar.gz",
            {f"foo-{version}/foo": f"#!/bin/sh\necho foo {version}\n".encode()},
            mode=0o644,
        )
    write_descriptor(
        "foo",
        name="Foo",
        executable="foo",
        defaultVersion="1.0",
        downloadUrlTemplate=f"{artifacts_dir.as_uri()}/foo-{{version}}.tar.gz",
        packaging="TARGZ_STRIP",
        layout="file",
    )
    return "foo"


@pytest.fixture
def jdk_tool(artifacts_dir: Path, make_tar, write_descriptor):
    """``jdk``: TARGZ, directory layout exporting ``jdk-<version>/bin``."""
    make_tar(
        artifacts_dir / "jdk-17.tar.gz",
        {
            "jdk-17/bin/java": b"#!/bin/sh\necho java\n",
            "jdk-17/lib/rt.jar": b"jar",
        },
    )
    write_descriptor(
        "jdk",
        defaultVersion=17,
        downloadUrlTemplate=f"{artifacts_dir.as_uri()}/jdk-{{version}}.tar.gz",
        packaging="TARGZ",
        layout="directory",
        paths="jdk-{version}/bin",
    )
    return "jdk"
