"""
scaffoldkit.substitution - Placeholder Rewriting in Extracted Files
===================================================================

After extraction, every file of the project is scanned once and each
``{{ NAME }}`` placeholder naming a declared variable is replaced by that
variable's value. Placeholders naming anything else are left exactly as
they are, so templates can carry their own ``{{ ... }}`` syntax (Vue,
Handlebars, Jinja) untouched.

Files that are not valid UTF-8 (images, fonts, compiled assets) are
skipped. Only files whose content actually changes are written back, so
a second pass over the same tree writes nothing unless a value itself
contains a declared placeholder.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from scaffoldkit.errors import SubstitutionError
from scaffoldkit.variables import PLACEHOLDER_PATTERN


def substitute_text(text: str, context: Mapping[str, str]) -> str:
    """
    Replace every declared placeholder in ``text`` in a single scan.

    Replacement values are inserted literally and never scanned again, so
    a value that itself looks like ``{{ OTHER }}`` stays as written and the
    result does not depend on the order of ``context``.
    """
    return PLACEHOLDER_PATTERN.sub(
        lambda m: context[m.group(1)] if m.group(1) in context else m.group(0),
        text,
    )


def iter_files(root: Path) -> list[Path]:
    """All regular files under ``root``, recursively, in a stable order."""
    return sorted(p for p in root.rglob("*") if p.is_file() and not p.is_symlink())


def substitute_tree(root: Path, context: Mapping[str, str]) -> list[Path]:
    """
    Rewrite placeholders in every file under ``root``.

    Parameters
    ----------
    root : Path
        Project directory.

    context : Mapping[str, str]
        Frozen variable context. Each of its names is replaced.

    Returns
    -------
    list[Path]
        Files whose content changed.

    Raises
    ------
    SubstitutionError
        If a file cannot be read or written.
    """
    rewritten: list[Path] = []

    try:
        for path in iter_files(root):
            raw = path.read_bytes()
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError:
                continue

            updated = substitute_text(text, context)
            if updated != text:
                path.write_bytes(updated.encode("utf-8"))
                rewritten.append(path)

    except OSError as e:
        raise SubstitutionError(f"Could not adjust template file {e.filename or root}: {e}") from e

    return rewritten
