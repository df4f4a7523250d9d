"""
Tests for CLI commands: tool, profile, shell, and global options.
"""

import json
import os
from pathlib import Path

from click.testing import CliRunner

from provisio.main import cli


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "provisio" in result.output
        for group in ("tool", "profile", "shell"):
            assert group in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestToolCommands:
    """Tests for `provisio tool`."""

    def test_list(self, root: Path, foo_tool, jdk_tool):
        runner = CliRunner()
        result = runner.invoke(cli, ["--root", str(root), "tool", "list"])
        assert result.exit_code == 0
        assert "foo" in result.output
        assert "TARGZ_STRIP" in result.output

    def test_list_json(self, root: Path, foo_tool, jdk_tool):
        runner = CliRunner()
        result = runner.invoke(cli, ["--root", str(root), "tool", "list", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [d["id"] for d in data] == ["foo", "jdk"]
        assert data[1]["layout"] == "directory"

    def test_list_missing_catalog(self, tmp_path: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["--root", str(tmp_path / "nowhere"), "tool", "list"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_install(self, root: Path, foo_tool):
        runner = CliRunner()
        result = runner.invoke(cli, ["--root", str(root), "tool", "install", "foo", "--version", "2.0"])
        assert result.exit_code == 0, result.output
        assert "Installed foo 2.0" in result.output
        assert (root / "bin" / "profiles" / "default" / "foo").is_symlink()

    def test_install_json_cached(self, root: Path, foo_tool):
        runner = CliRunner()
        args = ["--root", str(root), "tool", "install", "foo", "--profile", "work", "--json"]
        runner.invoke(cli, args)
        result = runner.invoke(cli, args)
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["cached"] is True
        assert data["link"].endswith(os.path.join("profiles", "work", "foo"))

    def test_install_unknown(self, root: Path, foo_tool):
        runner = CliRunner()
        result = runner.invoke(cli, ["--root", str(root), "tool", "install", "nope"])
        assert result.exit_code == 1
        assert "Unknown tool 'nope'" in result.output


class TestProfileCommands:
    """Tests for `provisio profile`."""

    def test_provision(self, root: Path, home: Path, foo_tool, write_profile):
        write_profile("default", {"foo": {"version": "1.0, 2.0"}})
        runner = CliRunner()
        result = runner.invoke(cli, ["--root", str(root), "profile", "provision"])
        assert result.exit_code == 0, result.output
        assert (root / "bin" / "installs" / "foo" / "2.0").is_dir()
        assert (root / "bin" / "profiles" / "default" / ".init.bash").is_file()
        assert (home / ".bash_profile").is_file()

    def test_provision_json(self, root: Path, foo_tool, write_profile):
        write_profile("dev", {"foo": {"version": "1.0"}})
        runner = CliRunner()
        result = runner.invoke(cli, ["--root", str(root), "profile", "provision", "--profile", "dev", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["profile"] == "dev"
        assert data["tools"][0]["version"] == "1.0"

    def test_provision_failure_context(self, root: Path, foo_tool, write_profile):
        write_profile("default", {"foo": {"version": "9.9"}})
        runner = CliRunner()
        result = runner.invoke(cli, ["--root", str(root), "profile", "provision"])
        assert result.exit_code == 1
        assert "entry=foo" in result.output
        assert "version=9.9" in result.output

    def test_activate_and_current(self, root: Path, foo_tool, write_profile):
        write_profile("default", {"foo": {"version": "1.0"}})
        write_profile("work", {"foo": {"version": "2.0"}})
        runner = CliRunner()
        runner.invoke(cli, ["--root", str(root), "profile", "provision"])
        runner.invoke(cli, ["--root", str(root), "profile", "provision", "--profile", "work"])

        result = runner.invoke(cli, ["--root", str(root), "profile", "activate", "work"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(cli, ["--root", str(root), "profile", "current"])
        assert result.output.strip() == "work"
        link = root / "bin" / "profiles" / "profile"
        assert Path(os.readlink(link)).name == "work"

    def test_activate_unprovisioned(self, root: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["--root", str(root), "profile", "activate", "ghost"])
        assert result.exit_code == 1
        assert "not been provisioned" in result.output


class TestShellCommands:
    """Tests for `provisio shell`."""

    def test_update_and_remove(self, root: Path, home: Path):
        rc = home / ".bashrc"
        rc.write_text("export A=1\n")
        runner = CliRunner()

        result = runner.invoke(cli, ["--root", str(root), "shell", "update"])
        assert result.exit_code == 0
        assert "provisio-start" in rc.read_text()

        result = runner.invoke(cli, ["--root", str(root), "shell", "remove"])
        assert result.exit_code == 0
        assert rc.read_text() == "export A=1\n"

        result = runner.invoke(cli, ["--root", str(root), "shell", "remove"])
        assert "No provisio stanza" in result.output
