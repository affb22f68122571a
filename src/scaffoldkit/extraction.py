"""
scaffoldkit.extraction - Archive Extraction
===========================================

Unpacks a downloaded template archive into the project directory.

GitHub archives wrap everything in one ``<repo>-<branch>/`` directory.
When every entry shares a single top-level directory it is stripped, so the
template's files land directly in ``<working_dir>/<APP_NAME>/``.

The archive file is always deleted afterwards, whether extraction
succeeded or not. A failed extraction leaves whatever was already written.
"""

from __future__ import annotations

import shutil
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from scaffoldkit.errors import ExtractionError


if TYPE_CHECKING:
    from rich.progress import Progress


def common_root(names: list[str]) -> str | None:
    """
    The single top-level directory shared by all archive entries, if any.

    Examples
    --------
    >>> common_root(["demo-master/", "demo-master/a.txt"])
    'demo-master'
    >>> common_root(["a.txt", "b/c.txt"]) is None
    True
    """
    roots = set()
    for name in names:
        parts = PurePosixPath(name).parts
        # A top-level file means there is nothing to strip
        if len(parts) == 1 and not name.endswith("/"):
            return None
        if parts:
            roots.add(parts[0])
    if len(roots) == 1:
        return roots.pop()
    return None


def entry_target(output_dir: Path, name: str, root: str | None) -> Path | None:
    """
    Where an archive entry is written, or None for the stripped root itself.

    Raises
    ------
    ExtractionError
        If the entry would be written outside ``output_dir``.
    """
    parts = PurePosixPath(name).parts
    if root is not None:
        parts = parts[1:]
    if not parts:
        return None

    if PurePosixPath(*parts).is_absolute() or ".." in parts:
        raise ExtractionError(f"Archive entry '{name}' points outside the project directory")

    target = output_dir.joinpath(*parts)
    if not target.resolve().is_relative_to(output_dir.resolve()):
        raise ExtractionError(f"Archive entry '{name}' points outside the project directory")
    return target


def extract_archive(
    archive_path: Path,
    output_dir: Path,
    progress: Progress | None = None,
) -> list[Path]:
    """
    Extract ``archive_path`` into ``output_dir`` entry by entry.

    Parameters
    ----------
    archive_path : Path
        Complete local zip archive. Deleted when this function returns.

    output_dir : Path
        Project directory. Created if missing.

    progress : Progress | None
        Optional Rich progress display. Advanced by each entry's
        uncompressed size.

    Returns
    -------
    list[Path]
        Files written, in archive order.

    Raises
    ------
    ExtractionError
        If the archive cannot be decoded or an entry cannot be written.
    """
    written: list[Path] = []

    try:
        with zipfile.ZipFile(archive_path) as archive:
            infos = archive.infolist()
            root = common_root([info.filename for info in infos])

            task = None
            if progress is not None:
                task = progress.add_task(
                    "extracting", total=sum(info.file_size for info in infos)
                )

            output_dir.mkdir(parents=True, exist_ok=True)

            for info in infos:
                target = entry_target(output_dir, info.filename, root)

                if target is not None:
                    if info.is_dir():
                        target.mkdir(parents=True, exist_ok=True)
                    else:
                        target.parent.mkdir(parents=True, exist_ok=True)
                        with archive.open(info) as src, target.open("wb") as dst:
                            shutil.copyfileobj(src, dst)
                        written.append(target)

                if progress is not None and task is not None:
                    progress.advance(task, info.file_size)

    except ExtractionError:
        raise
    except (
        zipfile.BadZipFile,
        zipfile.LargeZipFile,
        zlib.error,
        EOFError,
        NotImplementedError,  # unsupported compression method
        RuntimeError,  # encrypted entry
    ) as e:
        raise ExtractionError(f"Could not decode archive {archive_path.name}: {e}") from e
    except OSError as e:
        raise ExtractionError(f"Could not extract into {output_dir}: {e}") from e
    finally:
        archive_path.unlink(missing_ok=True)

    return written
