"""
scaffoldkit.models - Pydantic Models for Templates and the Catalog
==================================================================

This module defines the data models that describe a template and the
catalog that holds them. We use Pydantic so that a malformed catalog entry
is rejected with a clear message before any provisioning work starts.

Architecture Notes
------------------
The models are organized in a hierarchy:

    TemplateCatalog
    └── TemplateDescriptor (frozen, one per template)
        ├── variables: tuple[VariableSpec, ...]
        │   ├── PromptedVariable   (asks the user)
        │   └── GeneratedVariable  (random string)
        ├── create_directories: tuple[str, ...]
        └── extra_dependencies: tuple[str, ...]

Which variant a variable entry becomes is decided by its keys: an entry
with ``prompt`` is a PromptedVariable, an entry with ``generate`` is a
GeneratedVariable.

Usage Example
-------------
>>> from scaffoldkit.models import TemplateCatalog
>>> catalog = TemplateCatalog.bundled()
>>> descriptor = catalog.get("express-api")
>>> descriptor.metadata_url
'https://api.github.com/repos/scaffoldkit/express-api-template'
"""

from __future__ import annotations

import json
import string
import tomllib
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from scaffoldkit.errors import CatalogError, TemplateNotFoundError


# Variables are referenced from placeholders, so names must be identifiers
VARIABLE_NAME_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"

# The variable whose value names the target directory
APP_NAME = "APP_NAME"

GITHUB_PREFIX = "https://github.com"
GITHUB_API_PREFIX = "https://api.github.com/repos"


# =============================================================================
# Enumerations
# =============================================================================

class VariableType(str, Enum):
    """
    Prompt styles a PromptedVariable can request.

    Every answer is stored in the variable context as a string, whatever
    the prompt style: ``confirm`` yields ``"true"``/``"false"`` and
    ``number`` yields the digits the user typed.
    """

    TEXT = "text"
    SELECT = "select"
    PASSWORD = "password"
    NUMBER = "number"
    CONFIRM = "confirm"


class GenerateKind(str, Enum):
    """
    Character classes available to GeneratedVariable.

    Examples
    --------
    >>> GenerateKind("numeric").alphabet
    '0123456789'
    """

    HEX = "hex"
    BASE64 = "base64"
    URL_SAFE = "url-safe"
    NUMERIC = "numeric"
    DISTINGUISHABLE = "distinguishable"
    ASCII_PRINTABLE = "ascii-printable"
    ALPHANUMERIC = "alphanumeric"

    @property
    def alphabet(self) -> str:
        """Characters a generated value of this kind is drawn from."""
        alphabets = {
            GenerateKind.HEX: "0123456789abcdef",
            GenerateKind.BASE64: string.ascii_letters + string.digits + "+/",
            GenerateKind.URL_SAFE: string.ascii_letters + string.digits + "-._~",
            GenerateKind.NUMERIC: string.digits,
            GenerateKind.DISTINGUISHABLE: "CDEHKMPRTUWXY012458",
            GenerateKind.ASCII_PRINTABLE: "".join(chr(c) for c in range(33, 127)),
            GenerateKind.ALPHANUMERIC: string.ascii_letters + string.digits,
        }
        return alphabets[self]


class PackageManager(str, Enum):
    """
    Package managers the dependency installation stage can drive.

    Each manager is invoked twice per run: once to install the project's
    own manifest, once to add the template's extra dependencies.
    """

    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"
    UV = "uv"

    @property
    def base_command(self) -> list[str]:
        """Command that installs the manifest already present in the project."""
        commands = {
            PackageManager.NPM: ["npm", "install"],
            PackageManager.YARN: ["yarn", "install"],
            PackageManager.PNPM: ["pnpm", "install"],
            PackageManager.UV: ["uv", "sync"],
        }
        return list(commands[self])

    @property
    def add_command(self) -> list[str]:
        """Command prefix that adds new dependency specifiers."""
        commands = {
            PackageManager.NPM: ["npm", "install"],
            PackageManager.YARN: ["yarn", "add"],
            PackageManager.PNPM: ["pnpm", "add"],
            PackageManager.UV: ["uv", "add"],
        }
        return list(commands[self])


# =============================================================================
# Variable Specifications
# =============================================================================

class PromptedVariable(BaseModel):
    """
    A variable whose value is asked from the user.

    Attributes
    ----------
    name : str
        Key under which the answer is stored in the variable context.

    prompt : str
        Message shown to the user. May reference earlier variables with
        ``{{ NAME }}`` placeholders.

    type : VariableType
        Prompt style. Defaults to free text.

    options : tuple[str, ...] | None
        Choices for ``select`` prompts. Required for that type only.

    default : str | None
        Pre-filled answer. May reference earlier variables.

    required : bool
        If True, an empty answer is rejected and asked again.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(pattern=VARIABLE_NAME_PATTERN)
    prompt: str
    type: VariableType = VariableType.TEXT
    options: tuple[str, ...] | None = None
    default: str | None = None
    required: bool = False

    @field_validator("default", mode="before")
    @classmethod
    def normalize_default(cls, v: Any) -> str | None:
        """Catalog files may use JSON scalars; the context only holds strings."""
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, bool):
            return "true" if v else "false"
        return str(v)

    @model_validator(mode="after")
    def validate_options(self) -> PromptedVariable:
        """Select prompts need something to select from."""
        if self.type == VariableType.SELECT and not self.options:
            msg = f"Variable '{self.name}' is a select prompt but declares no options."
            raise ValueError(msg)
        return self


class GeneratedVariable(BaseModel):
    """
    A variable filled with a random string, without user interaction.

    Attributes
    ----------
    name : str
        Key under which the value is stored.

    generate : GenerateKind
        Character class to draw from.

    length : int
        Number of characters, 30 unless stated otherwise.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(pattern=VARIABLE_NAME_PATTERN)
    generate: GenerateKind
    length: int = Field(default=30, ge=1, le=4096)


VariableSpec = PromptedVariable | GeneratedVariable


# =============================================================================
# Template Descriptor
# =============================================================================

class TemplateDescriptor(BaseModel):
    """
    One template entry of the catalog.

    Descriptors are immutable once loaded: the provisioning pipeline reads
    them but never changes them.

    Attributes
    ----------
    name : str
        Unique key used to select the template from the CLI.

    repository : str
        Location of the template's source repository. For GitHub
        repositories the archive is fetched from
        ``<repository>/archive/<branch>.zip``.

    description : str
        Short human-readable summary shown by ``scaffoldkit list``.

    branch : str | None
        Branch to download. When absent, the repository's default branch
        (from the metadata query) is used.

    variables : tuple[VariableSpec, ...]
        Resolved strictly in this order.

    create_directories : tuple[str, ...]
        Extra empty directories, relative to the project root. May contain
        placeholders.

    extra_dependencies : tuple[str, ...]
        Dependency specifiers installed on top of the project's manifest.
        May contain placeholders.

    Examples
    --------
    >>> descriptor = TemplateDescriptor(
    ...     name="demo",
    ...     repository="https://github.com/acme/demo-template",
    ...     variables=[{"name": "APP_NAME", "prompt": "Name?", "required": True}],
    ... )
    >>> descriptor.archive_url("main")
    'https://github.com/acme/demo-template/archive/main.zip'
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: Annotated[str, Field(min_length=1, max_length=100)]
    repository: Annotated[str, Field(min_length=1)]
    description: str = ""
    branch: str | None = None
    variables: tuple[VariableSpec, ...] = ()
    create_directories: tuple[str, ...] = ()
    extra_dependencies: tuple[str, ...] = ()

    @field_validator("repository")
    @classmethod
    def normalize_repository(cls, v: str) -> str:
        """Strip trailing slashes and a ``.git`` suffix."""
        v = v.strip().rstrip("/")
        if v.endswith(".git"):
            v = v[: -len(".git")]
        return v

    @model_validator(mode="after")
    def validate_variables(self) -> TemplateDescriptor:
        """
        Check the structural presence of declared variables.

        Variable names must be unique, and ``APP_NAME`` must be declared
        since its value names the directory the project is created in.
        """
        seen: set[str] = set()
        for variable in self.variables:
            if variable.name in seen:
                msg = f"Template '{self.name}' declares variable '{variable.name}' twice."
                raise ValueError(msg)
            seen.add(variable.name)

        if APP_NAME not in seen:
            msg = f"Template '{self.name}' must declare an '{APP_NAME}' variable."
            raise ValueError(msg)

        return self

    @property
    def variable_names(self) -> list[str]:
        """Declared variable names, in declaration order."""
        return [v.name for v in self.variables]

    @property
    def is_github(self) -> bool:
        """Whether the repository is hosted on GitHub."""
        return self.repository.startswith(GITHUB_PREFIX + "/")

    @property
    def metadata_url(self) -> str | None:
        """
        GitHub API URL describing the repository, or None elsewhere.

        The metadata carries the repository size (used for the download
        progress bar) and its default branch.
        """
        if not self.is_github:
            return None
        return GITHUB_API_PREFIX + self.repository[len(GITHUB_PREFIX):]

    def archive_url(self, branch: str) -> str:
        """URL of the zip archive for ``branch``."""
        return f"{self.repository}/archive/{branch}.zip"


# =============================================================================
# Catalog
# =============================================================================

class TemplateCatalog(BaseModel):
    """
    Ordered collection of templates, looked up by name.

    The catalog file is either JSON (a top-level array of templates, or an
    object with a ``templates`` array) or TOML (``[[templates]]`` tables).
    """

    templates: list[TemplateDescriptor] = Field(default_factory=list)

    @field_validator("templates")
    @classmethod
    def validate_unique_names(cls, v: list[TemplateDescriptor]) -> list[TemplateDescriptor]:
        """Template names are lookup keys and must not repeat."""
        names = [t.name for t in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            msg = f"Duplicate template names in catalog: {', '.join(duplicates)}"
            raise ValueError(msg)
        return v

    def names(self) -> list[str]:
        """Template names in catalog order."""
        return [t.name for t in self.templates]

    def get(self, name: str | None) -> TemplateDescriptor:
        """
        Look up a template by name.

        Raises
        ------
        TemplateNotFoundError
            If no template has this name.
        """
        for template in self.templates:
            if template.name == name:
                return template
        raise TemplateNotFoundError(name)

    @classmethod
    def from_data(cls, data: Any, source: str = "catalog") -> TemplateCatalog:
        """
        Build a catalog from decoded JSON/TOML data.

        Raises
        ------
        CatalogError
            If the data does not describe a valid catalog.
        """
        if isinstance(data, list):
            data = {"templates": data}
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise CatalogError(f"Invalid templates catalog {source}:\n{e}") from e

    @classmethod
    def load(cls, path: Path) -> TemplateCatalog:
        """
        Load a catalog file.

        Parameters
        ----------
        path : Path
            ``.toml`` files are read as TOML, anything else as JSON.

        Raises
        ------
        CatalogError
            If the file is missing, unparseable, or invalid.
        """
        try:
            if path.suffix == ".toml":
                with path.open("rb") as f:
                    data = tomllib.load(f)
            else:
                data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise CatalogError(f"Templates catalog not found: {path}") from e
        except (OSError, json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
            raise CatalogError(f"Could not read templates catalog {path}: {e}") from e

        return cls.from_data(data, source=str(path))

    @classmethod
    def bundled(cls) -> TemplateCatalog:
        """Load the catalog shipped with scaffoldkit."""
        text = resources.files("scaffoldkit.catalog").joinpath("templates.json").read_text(
            encoding="utf-8"
        )
        return cls.from_data(json.loads(text), source="(bundled)")
