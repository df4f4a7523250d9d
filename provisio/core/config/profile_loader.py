"""
Profile loader: reads ``profile.yaml`` into a ToolProfile.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from provisio.core.config.yaml_text import load_text_scalars
from provisio.core.errors import ConfigError
from provisio.core.models.profile import ToolProfile

logger = logging.getLogger(__name__)


def load_profile(path: Path, name: str | None = None) -> ToolProfile:
    """Load and validate a profile spec.

    Args:
        path: Path to ``profile.yaml``.
        name: Profile name. Defaults to the name of the containing directory.

    Raises:
        ConfigError: If the file is missing, not YAML, or not a valid profile.
    """
    if not path.is_file():
        raise ConfigError(f"Profile spec not found: {path}")

    logger.debug("Loading profile spec from %s", path)

    try:
        data = load_text_scalars(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    data = {**data, "name": name or data.get("name") or path.parent.name}

    try:
        profile = ToolProfile.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid profile spec {path}: {e}") from e

    logger.info("Loaded profile '%s' with %d entries", profile.name, len(profile.tools))
    return profile
