"""
Tool descriptor model: the declarative record for one installable tool.

Loaded from ``tools/<id>/descriptor.yml``. A descriptor says where to
download a tool, how the download is packaged, and how the resulting
installation is exposed on disk.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Packaging(str, Enum):
    """How a downloaded artifact is turned into an installation directory."""

    RAW = "RAW"                  # single executable file, no archive
    TARGZ = "TARGZ"              # tar+gzip, keep the top-level directory
    TARGZ_STRIP = "TARGZ_STRIP"  # tar+gzip, strip one leading component
    ZIP = "ZIP"                  # zip, keep structure
    ZIP_JUNK = "ZIP_JUNK"        # zip, flatten every entry into one directory


class Layout(str, Enum):
    """What an installation exposes: one executable, or exported directories."""

    FILE = "file"
    DIRECTORY = "directory"


class ToolDescriptor(BaseModel):
    """Immutable metadata for one tool, keyed by ``id``.

    YAML keys are camelCase (``defaultVersion``, ``downloadUrlTemplate``,
    ``tarSingleFileToExtract``...); snake_case field names are accepted too.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    name: str = ""
    executable: str = ""
    default_version: str = Field(default="", alias="defaultVersion")
    url_template: str = Field(alias="downloadUrlTemplate")
    packaging: Packaging = Packaging.RAW
    layout: Layout = Layout.FILE
    paths: tuple[str, ...] = ()
    tar_single_file_to_extract: str | None = Field(default=None, alias="tarSingleFileToExtract")
    os_mappings: dict[str, str] = Field(default_factory=dict, alias="osMappings")
    arch_mappings: dict[str, str] = Field(default_factory=dict, alias="archMappings")

    @field_validator("default_version", mode="before")
    @classmethod
    def _version_as_string(cls, value: Any) -> Any:
        # plain numbers from callers that bypass the text-scalar YAML loader
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("packaging", mode="before")
    @classmethod
    def _packaging_upper(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("layout", mode="before")
    @classmethod
    def _layout_lower(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("paths", mode="before")
    @classmethod
    def _paths_as_tuple(cls, value: Any) -> Any:
        """Accept a single path, a comma-separated string, or a list."""
        if value is None:
            return ()
        if isinstance(value, str):
            return tuple(p.strip() for p in value.split(",") if p.strip())
        return value

    @property
    def executable_name(self) -> str:
        """Name of the runnable file inside an installation (falls back to the id)."""
        return self.executable or self.id

    @property
    def env_prefix(self) -> str:
        """Shell variable prefix for directory exports, e.g. ``apache-maven`` → ``APACHE_MAVEN``."""
        return self.id.replace("-", "_").replace(".", "_").upper()
