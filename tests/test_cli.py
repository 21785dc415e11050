"""end-to-end tests for the command line interface."""
import os
import pytest
import sys
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from nodeswitch.cli.main import app
from nodeswitch.host import ArchLabel, Host, OsLabel
from conftest import FakeIndex, http_404

runner = CliRunner()

posix_only = pytest.mark.skipif(os.name == "nt", reason="symlink activation is posix only")

HOST = Host(os=OsLabel.LINUX, arch=ArchLabel.X64)


@pytest.fixture
def env(tmp_path, monkeypatch):
    monkeypatch.setenv("NODESWITCH_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("NODESWITCH_LINK_DIR", str(tmp_path / "bin"))
    monkeypatch.delenv("NODESWITCH_MIRROR", raising=False)
    monkeypatch.delenv("NODESWITCH_MAX_WORKERS", raising=False)
    return tmp_path


@pytest.fixture
def index(env):
    fake = FakeIndex(HOST, ["16.0.0", "16.1.0", "18.0.0"], lts={"16.1.0": "Gallium"})
    with patch("nodeswitch.cli.main.detect_host", return_value=HOST), \
         patch("nodeswitch.cli.main.MirrorIndex", return_value=fake):
        yield fake


def installed_dirs(env):
    root = env / "data" / "node"
    if not root.exists():
        return []
    return sorted(p.name for p in root.iterdir() if p.name != "current")


class TestInstallCommand:
    def test_install_range(self, index, env):
        result = runner.invoke(app, ["install", "^16"])
        assert result.exit_code == 0, result.output
        assert "16.1.0" in result.output
        assert installed_dirs(env) == ["16.1.0"]

    def test_install_is_idempotent(self, index, env):
        runner.invoke(app, ["install", "18.0.0"])
        result = runner.invoke(app, ["install", "18.0.0"])
        assert result.exit_code == 0
        assert "already installed" in result.output
        assert index.downloads == ["18.0.0"]

    def test_requires_versions(self, index):
        result = runner.invoke(app, ["install"])
        assert result.exit_code == 1
        assert "at least one version" in result.output

    def test_invalid_specifier(self, index, env):
        result = runner.invoke(app, ["install", "not-a-version"])
        assert result.exit_code == 1
        assert "Invalid version" in result.output
        assert installed_dirs(env) == []

    def test_no_match(self, index, env):
        result = runner.invoke(app, ["install", "20.0.0"])
        assert result.exit_code == 1
        assert "No available version" in result.output

    def test_partial_failure_exit_code(self, index, env):
        index.failing["16.1.0"] = http_404("https://mirror.test/v16.1.0/x")
        result = runner.invoke(app, ["install", "16.0.0", "16.1.0", "18.0.0"])
        assert result.exit_code == 1
        assert "failed" in result.output
        assert installed_dirs(env) == ["16.0.0", "18.0.0"]

    @posix_only
    def test_install_and_use(self, index, env):
        result = runner.invoke(app, ["install", "--use", "^16", "18.0.0"])
        assert result.exit_code == 0, result.output
        assert "Now using Node.js 18.0.0" in result.output
        assert (env / "bin" / "node").is_symlink()


@posix_only
class TestLifecycle:
    def test_use_list_remove_roundtrip(self, index, env):
        assert runner.invoke(app, ["install", "16.0.0", "18.0.0"]).exit_code == 0

        result = runner.invoke(app, ["use", "16.0.0"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "* 16.0.0" in result.output
        assert "18.0.0" in result.output
        assert "current" not in result.output

        assert runner.invoke(app, ["current"]).output.strip() == "16.0.0"

        result = runner.invoke(app, ["remove", "16.0.0", "18.0.0"])
        assert result.exit_code == 0, result.output
        assert "was active" in result.output
        assert not (env / "data" / "node" / "current").is_symlink()
        assert list((env / "bin").iterdir()) == []

        result = runner.invoke(app, ["list"])
        assert result.exit_code == 1
        assert "No Node.js versions installed" in result.output

    def test_use_not_installed(self, index):
        result = runner.invoke(app, ["use", "18.0.0"])
        assert result.exit_code == 1
        assert "not installed" in result.output

    def test_use_invalid(self, index):
        result = runner.invoke(app, ["use", "banana"])
        assert result.exit_code == 1


class TestRemoveCommand:
    def test_requires_versions(self, index):
        result = runner.invoke(app, ["remove"])
        assert result.exit_code == 1

    def test_not_installed(self, index):
        result = runner.invoke(app, ["remove", "16.0.0"])
        assert result.exit_code == 1
        assert "not installed" in result.output

    def test_malformed_rejects_batch(self, index, env):
        runner.invoke(app, ["install", "16.0.0"])
        result = runner.invoke(app, ["remove", "16.0.0", "oops"])
        assert result.exit_code == 1
        assert installed_dirs(env) == ["16.0.0"]


class TestInfoCommands:
    def test_list_empty(self, index):
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 1

    def test_current_unset(self, index):
        result = runner.invoke(app, ["current"])
        assert result.exit_code == 0
        assert "none" in result.output

    def test_ls_remote(self, index):
        result = runner.invoke(app, ["ls-remote", "--lts"])
        assert result.exit_code == 0, result.output
        assert "16.1.0" in result.output
        assert "Gallium" in result.output
        assert "18.0.0" not in result.output

    def test_config_roundtrip(self, index, tmp_path):
        config_file = tmp_path / "config"
        from nodeswitch import config as config_module

        def fake_set(key, value):
            return config_module.set_config_value(key, value, config_file)

        def fake_get(key):
            return config_module.get_config_value(key, config_file)

        with patch("nodeswitch.cli.main.set_config_value", side_effect=fake_set), \
             patch("nodeswitch.cli.main.get_config_value", side_effect=fake_get):
            result = runner.invoke(app, ["config", "NODESWITCH_MAX_WORKERS", "6"])
            assert result.exit_code == 0, result.output
            result = runner.invoke(app, ["config", "NODESWITCH_MAX_WORKERS"])
            assert result.output.strip() == "6"
            result = runner.invoke(app, ["config", "BOGUS", "1"])
            assert result.exit_code == 1

    def test_bad_config_is_fatal(self, index, monkeypatch):
        monkeypatch.setenv("NODESWITCH_MAX_WORKERS", "-1")
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
