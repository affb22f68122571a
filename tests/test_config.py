"""
Tests for scaffoldkit.config
============================

Settings loading from TOML files and the environment.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from scaffoldkit.config import GITHUB_TOKEN_ENV, ScaffoldSettings, load_settings
from scaffoldkit.errors import ScaffoldError
from scaffoldkit.models import PackageManager


@pytest.fixture(autouse=True)
def no_user_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep the developer's own config file and token out of the tests."""
    monkeypatch.delenv(GITHUB_TOKEN_ENV, raising=False)
    with patch("scaffoldkit.config.USER_CONFIG_PATH", tmp_path / "absent" / "config.toml"):
        yield


class TestScaffoldSettings:
    """Tests for the ScaffoldSettings model."""

    def test_defaults(self) -> None:
        settings = ScaffoldSettings()
        assert settings.catalog is None
        assert settings.package_manager == PackageManager.NPM
        assert settings.timeout == 60.0
        assert settings.default_branch == "master"

    def test_package_manager_case_insensitive(self) -> None:
        assert ScaffoldSettings(package_manager="PNPM").package_manager == PackageManager.PNPM

    def test_token_hidden_from_repr(self) -> None:
        assert "secret-token" not in repr(ScaffoldSettings(github_token="secret-token"))


class TestLoadSettings:
    """Tests for settings discovery."""

    def test_no_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_settings(cwd=tmp_path) == ScaffoldSettings()

    def test_reads_project_file(self, tmp_path: Path) -> None:
        (tmp_path / "scaffoldkit.toml").write_text(
            'package_manager = "yarn"\ntimeout = 5\ndefault_branch = "main"\n'
        )

        settings = load_settings(cwd=tmp_path)

        assert settings.package_manager == PackageManager.YARN
        assert settings.timeout == 5
        assert settings.default_branch == "main"

    def test_relative_catalog_resolved_against_file(self, tmp_path: Path) -> None:
        config_dir = tmp_path / "conf"
        config_dir.mkdir()
        config_file = config_dir / "settings.toml"
        config_file.write_text('catalog = "templates.json"\n')

        settings = load_settings(config_file)

        assert settings.catalog == config_dir / "templates.json"

    def test_explicit_file_must_exist(self, tmp_path: Path) -> None:
        with pytest.raises(ScaffoldError, match="not found"):
            load_settings(tmp_path / "missing.toml")

    def test_invalid_value(self, tmp_path: Path) -> None:
        (tmp_path / "scaffoldkit.toml").write_text('package_manager = "bower"\n')
        with pytest.raises(ScaffoldError, match="Invalid settings"):
            load_settings(cwd=tmp_path)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "scaffoldkit.toml").write_text("timeout = = 3\n")
        with pytest.raises(ScaffoldError, match="Could not read"):
            load_settings(cwd=tmp_path)

    def test_token_from_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(GITHUB_TOKEN_ENV, "env-token")
        assert load_settings(cwd=tmp_path).github_token == "env-token"

    def test_file_token_wins_over_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(GITHUB_TOKEN_ENV, "env-token")
        (tmp_path / "scaffoldkit.toml").write_text('github_token = "file-token"\n')
        assert load_settings(cwd=tmp_path).github_token == "file-token"
