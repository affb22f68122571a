"""
scaffoldkit.config - User Settings
==================================

Settings that shape a provisioning run but are not part of any template:
which catalog to read, which package manager to drive, network timeouts.

Settings are read from the first TOML file found among:

    1. the path passed with ``--config``
    2. ``./scaffoldkit.toml``
    3. ``~/.config/scaffoldkit/config.toml``

A missing file simply means defaults. Options given on the command line
override whatever the file says.

Example ``scaffoldkit.toml``
----------------------------
    catalog = "templates.json"
    package_manager = "pnpm"
    timeout = 120
    default_branch = "main"
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from scaffoldkit.errors import ScaffoldError
from scaffoldkit.models import PackageManager


CONFIG_FILENAME = "scaffoldkit.toml"
USER_CONFIG_PATH = Path("~/.config/scaffoldkit/config.toml")
GITHUB_TOKEN_ENV = "SCAFFOLDKIT_GITHUB_TOKEN"


class ScaffoldSettings(BaseModel):
    """
    Settings for scaffoldkit runs.

    Attributes
    ----------
    catalog : Path | None
        Catalog file to use instead of the bundled one. Relative paths are
        resolved against the directory of the settings file.

    package_manager : PackageManager
        Program used to install dependencies.

    timeout : float
        HTTP timeout in seconds for metadata and archive requests.

    default_branch : str
        Branch downloaded when neither the template nor the repository
        metadata names one.

    github_token : str | None
        Bearer token sent with GitHub API metadata queries.
    """

    catalog: Path | None = Field(default=None, description="Templates catalog file")
    package_manager: PackageManager = Field(
        default=PackageManager.NPM,
        description="Package manager used to install dependencies",
    )
    timeout: float = Field(default=60.0, gt=0, description="HTTP timeout in seconds")
    default_branch: str = Field(default="master", min_length=1)
    github_token: str | None = Field(default=None, repr=False)

    @field_validator("package_manager", mode="before")
    @classmethod
    def normalize_package_manager(cls, v: object) -> object:
        """Accept ``"NPM"`` as well as ``"npm"``."""
        if isinstance(v, str):
            return v.lower().strip()
        return v

    @classmethod
    def from_toml(cls, path: Path) -> ScaffoldSettings:
        """
        Load settings from a TOML file.

        Raises
        ------
        ScaffoldError
            If the file cannot be parsed or holds invalid values.
        """
        try:
            with path.open("rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ScaffoldError(f"Could not read settings file {path}: {e}") from e

        try:
            settings = cls(**data)
        except ValidationError as e:
            raise ScaffoldError(f"Invalid settings in {path}:\n{e}") from e

        if settings.catalog is not None and not settings.catalog.is_absolute():
            settings = settings.model_copy(update={"catalog": path.parent / settings.catalog})
        return settings


def load_settings(path: Path | None = None, cwd: Path | None = None) -> ScaffoldSettings:
    """
    Find and load the settings that apply to this invocation.

    Parameters
    ----------
    path : Path | None
        Explicit settings file. Must exist when given.

    cwd : Path | None
        Directory searched for ``scaffoldkit.toml``. Defaults to the
        current working directory.

    Returns
    -------
    ScaffoldSettings
        Loaded settings, or defaults when no file is found.
    """
    if path is not None:
        if not path.exists():
            raise ScaffoldError(f"Settings file not found: {path}")
        settings = ScaffoldSettings.from_toml(path)
    else:
        candidates = [(cwd or Path.cwd()) / CONFIG_FILENAME, USER_CONFIG_PATH.expanduser()]
        found = next((c for c in candidates if c.is_file()), None)
        settings = ScaffoldSettings.from_toml(found) if found else ScaffoldSettings()

    if settings.github_token is None and os.environ.get(GITHUB_TOKEN_ENV):
        settings = settings.model_copy(update={"github_token": os.environ[GITHUB_TOKEN_ENV]})

    return settings
