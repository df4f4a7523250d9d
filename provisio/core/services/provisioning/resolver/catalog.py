"""
L2 Resolver: tool descriptor catalog.

Scans ``tools/`` (up to ``CATALOG_MAX_DEPTH`` levels) for
``descriptor.yml`` files. Files are visited in lexical path order and a
later descriptor with an already-seen id overrides the earlier one, so
the result does not depend on filesystem traversal order.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

import yaml
from pydantic import ValidationError

from provisio.core.config.yaml_text import load_text_scalars
from provisio.core.errors import CatalogError, UnknownToolError
from provisio.core.models.descriptor import ToolDescriptor
from provisio.core.services.provisioning.data.constants import (
    CATALOG_MAX_DEPTH,
    TOOL_DESCRIPTOR,
)

logger = logging.getLogger(__name__)


def find_descriptor_files(catalog_root: Path, max_depth: int = CATALOG_MAX_DEPTH) -> list[Path]:
    """All descriptor files at most ``max_depth`` levels below ``catalog_root``, sorted."""
    found: list[Path] = []
    for path in catalog_root.rglob(TOOL_DESCRIPTOR):
        depth = len(path.relative_to(catalog_root).parts)
        if depth <= max_depth and path.is_file():
            found.append(path)
    return sorted(found, key=lambda p: p.relative_to(catalog_root).as_posix())


def load_descriptor(path: Path) -> ToolDescriptor:
    """Parse one ``descriptor.yml``.

    A descriptor without an ``id`` takes the name of its directory.

    Raises:
        CatalogError: If the file is unreadable, not YAML, or invalid.
    """
    try:
        data = load_text_scalars(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise CatalogError(f"Cannot read descriptor {path}: {e}") from e
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML in descriptor {path}: {e}") from e

    if not isinstance(data, dict):
        raise CatalogError(f"Expected a YAML mapping in descriptor {path}, got {type(data).__name__}")

    data.setdefault("id", path.parent.name)

    try:
        return ToolDescriptor.model_validate(data)
    except ValidationError as e:
        raise CatalogError(f"Invalid descriptor {path}: {e}", tool=str(data.get("id", ""))) from e


def load_catalog(catalog_root: Path) -> Mapping[str, ToolDescriptor]:
    """Load every descriptor under ``catalog_root`` into a read-only id → descriptor mapping.

    Raises:
        CatalogError: If the root is missing or any descriptor is malformed.
    """
    if not catalog_root.is_dir():
        raise CatalogError(f"Tool catalog not found: {catalog_root}")

    descriptors: dict[str, ToolDescriptor] = {}
    sources: dict[str, Path] = {}
    for path in find_descriptor_files(catalog_root):
        descriptor = load_descriptor(path)
        if descriptor.id in descriptors:
            logger.debug(
                "Descriptor %s overrides %s for tool '%s'",
                path, sources[descriptor.id], descriptor.id,
            )
        descriptors[descriptor.id] = descriptor
        sources[descriptor.id] = path

    logger.info("Loaded %d tool descriptors from %s", len(descriptors), catalog_root)
    return MappingProxyType(dict(sorted(descriptors.items())))


def lookup(catalog: Mapping[str, ToolDescriptor], tool_id: str) -> ToolDescriptor:
    """Descriptor for ``tool_id``.

    Raises:
        UnknownToolError: If the catalog has no such id.
    """
    try:
        return catalog[tool_id]
    except KeyError:
        raise UnknownToolError(f"Unknown tool '{tool_id}'", tool=tool_id) from None
