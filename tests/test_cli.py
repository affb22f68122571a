"""
Tests for scaffoldkit.cli
=========================

This module contains tests for the command-line interface.
Tests use Typer's CliRunner for testing CLI commands. The provisioning
pipeline itself is replaced by a mock; it is exercised end to end in
test_pipeline.py.

Test Organization
-----------------
- TestVersionCommand: Tests for --version flag
- TestNewCommand: Tests for the new command
- TestListCommand: Tests for the list command
- TestHelpOutput: Tests for help text
"""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from scaffoldkit import __version__
from scaffoldkit.cli import app
from scaffoldkit.errors import AcquisitionError
from scaffoldkit.models import PackageManager
from scaffoldkit.variables import QuestionaryPrompter


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep the developer's own settings files out of the tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SCAFFOLDKIT_GITHUB_TOKEN", raising=False)
    with patch("scaffoldkit.config.USER_CONFIG_PATH", tmp_path / "absent" / "config.toml"):
        yield


@pytest.fixture
def pipeline_cls():
    """Replace ProvisioningPipeline in the CLI with a mock."""
    with patch("scaffoldkit.cli.ProvisioningPipeline") as mock:
        yield mock


@pytest.fixture
def catalog_file(tmp_path: Path, descriptor_data: dict) -> Path:
    """A one-template catalog on disk."""
    path = tmp_path / "templates.json"
    path.write_text(json.dumps([descriptor_data]))
    return path


# =============================================================================
# Version Command Tests
# =============================================================================

class TestVersionCommand:
    """Tests for the --version flag."""

    def test_version_flag(self, runner: CliRunner) -> None:
        """Test that --version shows version."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_version_short_flag(self, runner: CliRunner) -> None:
        """Test that -V shows version."""
        result = runner.invoke(app, ["-V"])

        assert result.exit_code == 0
        assert __version__ in result.stdout


# =============================================================================
# New Command Tests
# =============================================================================

class TestNewCommand:
    """Tests for the new command."""

    def test_unknown_template(self, runner: CliRunner, pipeline_cls: MagicMock) -> None:
        result = runner.invoke(app, ["new", "--template", "nope"])

        assert result.exit_code == 1
        assert "Template 'nope' does not exist." in result.stdout
        pipeline_cls.assert_not_called()

    def test_missing_template_lists_names(self, runner: CliRunner, pipeline_cls: MagicMock) -> None:
        result = runner.invoke(app, ["new"])

        assert result.exit_code == 1
        assert "No template given" in result.stdout
        assert "express-api" in result.stdout
        pipeline_cls.assert_not_called()

    def test_invalid_package_manager(self, runner: CliRunner, pipeline_cls: MagicMock) -> None:
        result = runner.invoke(app, ["new", "-t", "express-api", "-m", "bower"])

        assert result.exit_code == 1
        assert "Invalid package manager" in result.stdout
        pipeline_cls.assert_not_called()

    def test_builds_pipeline(
        self, runner: CliRunner, pipeline_cls: MagicMock, tmp_path: Path
    ) -> None:
        result = runner.invoke(
            app,
            ["new", "-t", "static-site", "-o", str(tmp_path), "-m", "PNPM", "--skip-install"],
        )

        assert result.exit_code == 0
        pipeline_cls.return_value.run.assert_called_once_with()

        args, kwargs = pipeline_cls.call_args
        assert args[0].name == "static-site"
        assert isinstance(kwargs["prompter"], QuestionaryPrompter)
        assert kwargs["installer"].manager == PackageManager.PNPM
        assert kwargs["settings"].package_manager == PackageManager.PNPM
        assert kwargs["working_dir"] == tmp_path
        assert kwargs["skip_install"] is True
        assert kwargs["verbose"] is True

    def test_quiet(self, runner: CliRunner, pipeline_cls: MagicMock) -> None:
        runner.invoke(app, ["new", "-t", "static-site", "--quiet"])
        assert pipeline_cls.call_args.kwargs["verbose"] is False

    def test_custom_catalog(
        self, runner: CliRunner, pipeline_cls: MagicMock, catalog_file: Path
    ) -> None:
        result = runner.invoke(app, ["new", "-t", "demo", "--catalog", str(catalog_file)])

        assert result.exit_code == 0
        assert pipeline_cls.call_args.args[0].repository == "https://github.com/acme/demo-template"

    def test_settings_file(
        self, runner: CliRunner, pipeline_cls: MagicMock, tmp_path: Path, catalog_file: Path
    ) -> None:
        (tmp_path / "scaffoldkit.toml").write_text(
            f'catalog = "{catalog_file.name}"\npackage_manager = "yarn"\n'
        )

        result = runner.invoke(app, ["new", "-t", "demo"])

        assert result.exit_code == 0
        assert pipeline_cls.call_args.kwargs["installer"].manager == PackageManager.YARN

    def test_invalid_settings_file(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "bad.toml"
        config.write_text("timeout = -1\n")

        result = runner.invoke(app, ["new", "-t", "static-site", "--config", str(config)])

        assert result.exit_code == 1
        assert "Invalid settings" in result.stdout

    def test_pipeline_failure_exits_1(self, runner: CliRunner, pipeline_cls: MagicMock) -> None:
        pipeline_cls.return_value.run.side_effect = AcquisitionError("Archive download failed (404)")

        result = runner.invoke(app, ["new", "-t", "static-site", "-q"])

        assert result.exit_code == 1
        assert "Archive download failed (404)" in result.stdout

    def test_missing_catalog(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(app, ["new", "-t", "x", "-c", str(tmp_path / "none.json")])

        assert result.exit_code == 1
        assert "not found" in result.stdout


# =============================================================================
# List Command Tests
# =============================================================================

class TestListCommand:
    """Tests for the list command."""

    def test_bundled_catalog(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        for name in ("express-api", "static-site", "python-service"):
            assert name in result.stdout

    def test_custom_catalog(self, runner: CliRunner, catalog_file: Path) -> None:
        result = runner.invoke(app, ["list", "--catalog", str(catalog_file)])

        assert result.exit_code == 0
        assert "demo" in result.stdout
        assert "express-api" not in result.stdout

    def test_empty_catalog(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "empty.json"
        path.write_text("[]")

        result = runner.invoke(app, ["list", "-c", str(path)])

        assert result.exit_code == 0
        assert "no templates" in result.stdout

    def test_invalid_catalog(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text('[{"name": "x"}]')

        result = runner.invoke(app, ["list", "-c", str(path)])

        assert result.exit_code == 1
        assert "Invalid templates catalog" in result.stdout


# =============================================================================
# Help Output Tests
# =============================================================================

class TestHelpOutput:
    """Tests for help text output."""

    def test_main_help(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "new" in result.stdout
        assert "list" in result.stdout

    def test_new_help(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["new", "--help"])

        assert result.exit_code == 0
        assert "--template" in result.stdout
        assert "--skip-install" in result.stdout
