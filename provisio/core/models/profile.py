"""
Profile model: the tools (and versions) a user wants in one shell environment.

Loaded from ``profiles/<name>/profile.yaml``::

    tools:
      jdk:
        version: 17.0.2
      maven:
        version: 3.8.6, 3.9.4
      krew:
        version: 0.4.4
        pathManagedBy: kubectl
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Versions in an entry are separated by whitespace and/or commas
_VERSION_SPLIT = re.compile(r"[\s,]+")


class ProfileEntry(BaseModel):
    """One tool selection inside a profile."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    version: str = ""
    path_managed_by: str | None = Field(default=None, alias="pathManagedBy")

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_string(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, list):
            return ", ".join(str(v) for v in value)
        return value

    def versions(self) -> list[str]:
        """Every requested version, in declaration order."""
        return [v for v in _VERSION_SPLIT.split(self.version.strip()) if v]


class ToolProfile(BaseModel):
    """An ordered mapping of entry name → ProfileEntry.

    Insertion order is significant: it is the order in which tools are
    provisioned and in which their shell exports are generated.
    """

    name: str = ""
    tools: dict[str, ProfileEntry] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _fill_entry_names(cls, data: Any) -> Any:
        """Entries keyed by tool id may omit ``name``; the key is used."""
        if not isinstance(data, dict):
            return data
        tools = data.get("tools") or {}
        if isinstance(tools, dict):
            filled: dict[str, Any] = {}
            for key, entry in tools.items():
                if entry is None:
                    entry = {}
                if isinstance(entry, (str, int, float)):
                    entry = {"version": entry}
                if isinstance(entry, dict) and "name" not in entry:
                    entry = {**entry, "name": key}
                filled[key] = entry
            data = {**data, "tools": filled}
        return data

    def entries(self) -> list[ProfileEntry]:
        """Entries in declaration order."""
        return list(self.tools.values())
