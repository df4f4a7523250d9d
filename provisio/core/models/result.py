"""
Provisioning results: transient value objects for reporting and tests.

Nothing in the engine makes control-flow decisions from these; the
on-disk installation directory is the only persisted signal.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class ToolProvisioningResult(BaseModel):
    """Outcome of provisioning one (tool, version) pair."""

    tool_id: str
    version: str
    installation: Path
    # Symlink created (or found) in the profile binary directory, file layout only
    link: Path | None = None
    # Exported paths relative to the installs root, directory layout only
    paths: list[Path] = Field(default_factory=list)
    # True when the installation already existed and nothing was downloaded
    cached: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool_id,
            "version": self.version,
            "installation": str(self.installation),
            "link": str(self.link) if self.link else None,
            "paths": [p.as_posix() for p in self.paths],
            "cached": self.cached,
        }


class ProfileProvisioningResult(BaseModel):
    """Ordered per-tool results for one profile run."""

    profile: str
    tools: list[ToolProvisioningResult] = Field(default_factory=list)
    init_script: Path | None = None
    shell_file: Path | None = None

    def installations(self) -> list[Path]:
        return [t.installation for t in self.tools]

    def to_dict(self) -> dict[str, Any]:
        return {
            "profile": self.profile,
            "tools": [t.to_dict() for t in self.tools],
            "init_script": str(self.init_script) if self.init_script else None,
            "shell_file": str(self.shell_file) if self.shell_file else None,
        }
