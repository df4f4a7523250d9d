"""
Configuration loader: the provisio root and everything derived from it.

The root is supplied explicitly (``--root``), through ``PROVISIO_ROOT``,
or defaults to ``~/.provisio``. An optional ``<root>/config.yml``
overrides tunables such as download and hook timeouts::

    downloadTimeout: 120
    hookTimeout: 900
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from provisio.core.errors import ConfigError

logger = logging.getLogger(__name__)

# Optional tunables file inside the root
ROOT_CONFIG_FILE = "config.yml"

ROOT_ENV_VAR = "PROVISIO_ROOT"
DEFAULT_ROOT_NAME = ".provisio"

PROFILE_SPEC = "profile.yaml"
FUNCTIONS_LIBRARY = "provisio-functions.bash"

# Seconds
DEFAULT_DOWNLOAD_TIMEOUT = 60
DEFAULT_HOOK_TIMEOUT = 600


class ProvisioConfig(BaseModel):
    """Process-wide roots and tunables.

    ``bin/{cache,installs,profiles}`` hold machine-managed state;
    ``tools/`` is the descriptor catalog and ``profiles/`` holds the
    user-declared profile specs.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    root: Path
    home: Path = Field(default_factory=Path.home)
    download_timeout: int = Field(default=DEFAULT_DOWNLOAD_TIMEOUT, alias="downloadTimeout", gt=0)
    hook_timeout: int = Field(default=DEFAULT_HOOK_TIMEOUT, alias="hookTimeout", gt=0)

    # ── bin/ (machine-managed) ──────────────────────────────────

    @property
    def bin_dir(self) -> Path:
        return self.root / "bin"

    @property
    def cache_dir(self) -> Path:
        return self.bin_dir / "cache"

    @property
    def installs_dir(self) -> Path:
        return self.bin_dir / "installs"

    @property
    def profiles_dir(self) -> Path:
        return self.bin_dir / "profiles"

    # ── user-declared ───────────────────────────────────────────

    @property
    def tools_dir(self) -> Path:
        return self.root / "tools"

    @property
    def user_profiles_dir(self) -> Path:
        return self.root / "profiles"

    @property
    def functions_library(self) -> Path:
        return self.root / "libexec" / FUNCTIONS_LIBRARY

    def profile_bin_dir(self, profile: str) -> Path:
        """Per-profile binary directory (symlinks + generated init script)."""
        return self.profiles_dir / profile

    def profile_spec(self, profile: str) -> Path:
        """The user's ``profile.yaml`` for ``profile``."""
        return self.user_profiles_dir / profile / PROFILE_SPEC


def default_root(env: dict[str, str] | None = None) -> Path:
    """``$PROVISIO_ROOT`` if set, else ``~/.provisio``."""
    env = os.environ if env is None else env
    value = env.get(ROOT_ENV_VAR)
    if value:
        return Path(value).expanduser()
    return Path.home() / DEFAULT_ROOT_NAME


def load_config(
    root: Path | None = None,
    *,
    home: Path | None = None,
    env: dict[str, str] | None = None,
) -> ProvisioConfig:
    """Build the configuration for ``root``.

    Args:
        root: Explicit provisio root. If None, uses ``default_root()``.
        home: Override for the user's home directory (tests).
        env: Environment mapping (default: ``os.environ``).

    Raises:
        ConfigError: If ``config.yml`` exists but is invalid.
    """
    root = (root or default_root(env)).expanduser()
    data: dict = {"root": root}
    if home is not None:
        data["home"] = home

    config_file = root / ROOT_CONFIG_FILE
    if config_file.is_file():
        logger.debug("Loading provisio config from %s", config_file)
        try:
            raw = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Cannot read {config_file}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e
        if raw is not None and not isinstance(raw, dict):
            raise ConfigError(f"Expected a YAML mapping in {config_file}, got {type(raw).__name__}")
        for key, value in (raw or {}).items():
            if key not in ("root", "home"):
                data[key] = value

    try:
        return ProvisioConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid provisio configuration: {e}") from e
