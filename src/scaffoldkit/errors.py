"""
scaffoldkit.errors - Provisioning Error Taxonomy
================================================

Every failure the provisioning pipeline can report is a subclass of
``ScaffoldError``. Each stage raises exactly one kind of error, so the
orchestrator and the CLI can report a single stage-specific message.

Hierarchy
---------
    ScaffoldError
    ├── CatalogError
    │   └── TemplateNotFoundError
    ├── VariableResolutionError
    ├── AcquisitionError
    ├── ExtractionError
    ├── SubstitutionError
    ├── DirectoryCreationError   (recoverable, reported as a warning)
    └── DependencyInstallError

All errors except ``DirectoryCreationError`` are fatal: they abort the
remainder of the pipeline.
"""

from __future__ import annotations

from pathlib import Path


class ScaffoldError(Exception):
    """Base class for all scaffoldkit errors."""

    stage: str = "provisioning"


class CatalogError(ScaffoldError):
    """Raised when the templates catalog cannot be read or is invalid."""

    stage = "catalog"


class TemplateNotFoundError(CatalogError):
    """Raised when no catalog entry matches the requested template name."""

    def __init__(self, name: str | None) -> None:
        self.name = name
        super().__init__(f"Template '{name}' does not exist.")


class VariableResolutionError(ScaffoldError):
    """Raised when the variable context cannot be built."""

    stage = "resolving"


class AcquisitionError(ScaffoldError):
    """Raised when the template archive cannot be downloaded."""

    stage = "acquiring"


class ExtractionError(ScaffoldError):
    """Raised when the downloaded archive cannot be unpacked."""

    stage = "extracting"


class SubstitutionError(ScaffoldError):
    """Raised when placeholder substitution fails on the extracted tree."""

    stage = "substituting"


class DirectoryCreationError(ScaffoldError):
    """
    Raised for a single directory that could not be created.

    The scaffolding stage never lets this propagate; it is collected and
    shown as a warning while the remaining directories are still attempted.
    """

    stage = "scaffolding"

    def __init__(self, directory: str, reason: str) -> None:
        self.directory = directory
        self.reason = reason
        super().__init__(f"Failed to create directory '/{directory}': {reason}")


class DependencyInstallError(ScaffoldError):
    """Raised when the package manager fails to install dependencies."""

    stage = "installing_deps"

    def __init__(self, message: str, target: Path | None = None) -> None:
        self.target = target
        super().__init__(message)
