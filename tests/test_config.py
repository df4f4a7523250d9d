"""
Tests for configuration: root resolution, config.yml, profile specs,
atomic writes and logging setup.
"""

import logging
import textwrap
from pathlib import Path

import pytest

from provisio.core.config.loader import (
    DEFAULT_DOWNLOAD_TIMEOUT,
    DEFAULT_HOOK_TIMEOUT,
    default_root,
    load_config,
)
from provisio.core.config.profile_loader import load_profile
from provisio.core.config.yaml_text import load_text_scalars
from provisio.core.errors import ConfigError
from provisio.core.observability.logging_config import resolve_level, setup_logging
from provisio.core.persistence.atomic import write_text_atomic


class TestDefaultRoot:
    """Tests for provisio root resolution."""

    def test_env_var(self, tmp_path: Path):
        assert default_root({"PROVISIO_ROOT": str(tmp_path / "p")}) == tmp_path / "p"

    def test_home_fallback(self, home: Path):
        assert default_root({}) == home / ".provisio"


class TestLoadConfig:
    """Tests for load_config."""

    def test_layout(self, root: Path, home: Path):
        config = load_config(root, home=home)
        assert config.cache_dir == root / "bin" / "cache"
        assert config.installs_dir == root / "bin" / "installs"
        assert config.profiles_dir == root / "bin" / "profiles"
        assert config.tools_dir == root / "tools"
        assert config.profile_bin_dir("dev") == root / "bin" / "profiles" / "dev"
        assert config.profile_spec("dev") == root / "profiles" / "dev" / "profile.yaml"
        assert config.functions_library == root / "libexec" / "provisio-functions.bash"

    def test_default_timeouts(self, root: Path, home: Path):
        config = load_config(root, home=home)
        assert config.download_timeout == DEFAULT_DOWNLOAD_TIMEOUT
        assert config.hook_timeout == DEFAULT_HOOK_TIMEOUT

    def test_config_file_overrides(self, root: Path, home: Path):
        (root / "config.yml").write_text("downloadTimeout: 5\nhookTimeout: 30\n")
        config = load_config(root, home=home)
        assert config.download_timeout == 5
        assert config.hook_timeout == 30

    def test_config_file_cannot_move_root(self, root: Path, home: Path, tmp_path: Path):
        (root / "config.yml").write_text(f"root: {tmp_path / 'elsewhere'}\n")
        assert load_config(root, home=home).root == root

    def test_env_root(self, home: Path, tmp_path: Path):
        config = load_config(env={"PROVISIO_ROOT": str(tmp_path / "r")}, home=home)
        assert config.root == tmp_path / "r"

    def test_invalid_yaml(self, root: Path, home: Path):
        (root / "config.yml").write_text("downloadTimeout: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(root, home=home)

    def test_invalid_value(self, root: Path, home: Path):
        (root / "config.yml").write_text("downloadTimeout: 0\n")
        with pytest.raises(ConfigError):
            load_config(root, home=home)

    def test_non_mapping(self, root: Path, home: Path):
        (root / "config.yml").write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(root, home=home)


class TestLoadProfile:
    """Tests for profile.yaml loading."""

    def test_load(self, tmp_path: Path):
        path = tmp_path / "dev" / "profile.yaml"
        path.parent.mkdir()
        path.write_text(textwrap.dedent("""\
            tools:
              jdk:
                version: 17
              maven:
                version: 3.8.6, 3.9.4
              krew:
                version: 0.4.4
                pathManagedBy: kubectl
        """))
        profile = load_profile(path)
        assert profile.name == "dev"
        jdk, maven, krew = profile.entries()
        assert jdk.versions() == ["17"]
        assert maven.versions() == ["3.8.6", "3.9.4"]
        assert krew.path_managed_by == "kubectl"

    def test_explicit_name_wins(self, tmp_path: Path):
        path = tmp_path / "profile.yaml"
        path.write_text("name: from-file\ntools: {}\n")
        assert load_profile(path, "explicit").name == "explicit"
        assert load_profile(path).name == "from-file"

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty" / "profile.yaml"
        path.parent.mkdir()
        path.write_text("")
        assert load_profile(path).entries() == []

    def test_missing(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_profile(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "profile.yaml"
        path.write_text("tools: {jdk: [\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_profile(path)

    def test_unquoted_version_keeps_trailing_zero(self, tmp_path: Path):
        path = tmp_path / "profile.yaml"
        path.write_text("tools:\n  go:\n    version: 1.20\n")
        (go,) = load_profile(path).entries()
        assert go.versions() == ["1.20"]

    def test_text_scalars_keep_booleans_and_nulls(self):
        data = load_text_scalars("a: 1.20\nb: 17\nc: true\nd: null\n")
        assert data == {"a": "1.20", "b": "17", "c": True, "d": None}


class TestAtomicWrite:
    """Tests for write_text_atomic."""

    def test_creates_parents(self, tmp_path: Path):
        path = tmp_path / "a" / "b" / "file.txt"
        write_text_atomic(path, "hello\n")
        assert path.read_text() == "hello\n"

    def test_replaces_content(self, tmp_path: Path):
        path = tmp_path / "file.txt"
        path.write_text("old")
        write_text_atomic(path, "new")
        assert path.read_text() == "new"

    def test_mode(self, tmp_path: Path):
        path = tmp_path / "file.txt"
        write_text_atomic(path, "x", mode=0o600)
        assert path.stat().st_mode & 0o777 == 0o600

    def test_preserves_existing_mode(self, tmp_path: Path):
        path = tmp_path / "file.txt"
        path.write_text("old")
        path.chmod(0o640)
        write_text_atomic(path, "new")
        assert path.stat().st_mode & 0o777 == 0o640

    def test_no_temp_files_left(self, tmp_path: Path):
        write_text_atomic(tmp_path / "file.txt", "x")
        assert [p.name for p in tmp_path.iterdir()] == ["file.txt"]


class TestLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def _restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_level(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_falls_back(self):
        setup_logging(level="LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_log_file(self, tmp_path: Path):
        log_file = tmp_path / "provisio.log"
        setup_logging(level="WARNING", log_file=str(log_file), log_file_level="DEBUG")
        logging.getLogger("provisio.test").debug("hello file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello file" in log_file.read_text()
        assert logging.getLogger().level == logging.DEBUG

    def test_resolve_level_precedence(self):
        env = {"PROVISIO_LOG_LEVEL": "INFO"}
        assert resolve_level(debug=True, quiet=True, env=env) == "DEBUG"
        assert resolve_level(verbose=True, env=env) == "INFO"
        assert resolve_level(quiet=True, env=env) == "ERROR"
        assert resolve_level(env=env) == "INFO"
        assert resolve_level(env={}) == "WARNING"

    def test_third_party_quieted(self):
        setup_logging(level="INFO")
        assert logging.getLogger("urllib3").level == logging.WARNING
