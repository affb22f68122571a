"""
scaffoldkit.scaffolding - Extra Directory Creation
==================================================

Creates the empty directories a template declares in
``create_directories`` (log folders, upload folders, ...), which archives
cannot carry since zip files drop empty directories in practice.

A directory that cannot be created is reported as a warning; the
remaining directories are still attempted and the run carries on.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from scaffoldkit.errors import DirectoryCreationError
from scaffoldkit.variables import interpolate


@dataclass
class ScaffoldResult:
    """
    Outcome of the scaffolding stage.

    Attributes
    ----------
    created : list[Path]
        Directories that exist after the stage.

    warnings : list[DirectoryCreationError]
        One entry per directory that could not be created.
    """

    created: list[Path] = field(default_factory=list)
    warnings: list[DirectoryCreationError] = field(default_factory=list)


def create_directory(root: Path, relative: str) -> Path:
    """
    Create ``root / relative`` with any missing parents.

    Raises
    ------
    DirectoryCreationError
        If the path is empty, escapes ``root``, or cannot be created.
    """
    relative = relative.strip().lstrip("/")
    if not relative:
        raise DirectoryCreationError(relative, "empty directory name")

    target = root / relative
    if not target.resolve().is_relative_to(root.resolve()):
        raise DirectoryCreationError(relative, "path points outside the project directory")

    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreationError(relative, e.strerror or str(e)) from e

    return target


def create_directories(
    root: Path,
    directories: Iterable[str],
    context: Mapping[str, str],
) -> ScaffoldResult:
    """
    Create every declared directory under ``root``.

    Each entry is interpolated against the final variable context first.
    Failures are collected, never raised.
    """
    result = ScaffoldResult()

    for entry in directories:
        relative = interpolate(entry, context)
        try:
            result.created.append(create_directory(root, relative))
        except DirectoryCreationError as e:
            result.warnings.append(e)

    return result
