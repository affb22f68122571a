"""
scaffoldkit.acquisition - Template Archive Download
===================================================

Downloads a template's packaged archive into the working directory.

For GitHub repositories two requests are made:

    1. ``GET https://api.github.com/repos/<owner>/<repo>``
       Repository metadata: its size (for the progress bar) and its
       default branch.
    2. ``GET https://github.com/<owner>/<repo>/archive/<branch>.zip``
       The archive itself, streamed to disk.

Durability
----------
``download_archive`` returns only once every chunk has been written,
flushed and fsynced, and the file is closed. The end of the *response*
stream is not enough: extraction must never read an archive whose write
side is still in flight.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from scaffoldkit.errors import AcquisitionError
from scaffoldkit.models import TemplateDescriptor


if TYPE_CHECKING:
    from rich.progress import Progress


ARCHIVE_FILENAME = "archive.zip"
CHUNK_SIZE = 64 * 1024


@dataclass
class RepositoryMetadata:
    """
    What the metadata query tells us about a repository.

    Both fields are best-effort: a missing size only means the progress bar
    has no known total.
    """

    size_bytes: int | None = None
    default_branch: str | None = None


def fetch_metadata(
    client: httpx.Client,
    descriptor: TemplateDescriptor,
    token: str | None = None,
) -> RepositoryMetadata:
    """
    Query the repository metadata.

    Repositories outside GitHub have no metadata endpoint; an empty
    RepositoryMetadata is returned without making a request.

    Raises
    ------
    AcquisitionError
        On any transport error or error status.
    """
    url = descriptor.metadata_url
    if url is None:
        return RepositoryMetadata()

    headers = {"Accept": "application/vnd.github+json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    try:
        response = client.get(url, headers=headers)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        raise AcquisitionError(
            f"Repository metadata request failed ({e.response.status_code}): {url}"
        ) from e
    except httpx.HTTPError as e:
        raise AcquisitionError(f"Could not reach {url}: {e}") from e
    except ValueError as e:
        raise AcquisitionError(f"Repository metadata is not valid JSON: {url}") from e

    size_kib = data.get("size") if isinstance(data, dict) else None
    branch = data.get("default_branch") if isinstance(data, dict) else None

    return RepositoryMetadata(
        size_bytes=int(size_kib) * 1024 if isinstance(size_kib, int) and size_kib > 0 else None,
        default_branch=branch if isinstance(branch, str) and branch else None,
    )


def download_archive(
    client: httpx.Client,
    url: str,
    destination: Path,
    total: int | None = None,
    progress: Progress | None = None,
) -> Path:
    """
    Stream ``url`` into ``destination``.

    Every received chunk is written to the file and then reported to the
    progress bar. When the stream ends the file is flushed, fsynced and
    closed before this function returns.

    Parameters
    ----------
    client : httpx.Client
        Client used for the request. Redirects are followed.

    url : str
        Archive URL.

    destination : Path
        Local file to create.

    total : int | None
        Expected size in bytes, for display only. The response's
        Content-Length is preferred when present.

    progress : Progress | None
        Optional Rich progress display for this run.

    Returns
    -------
    Path
        ``destination``, complete on disk.

    Raises
    ------
    AcquisitionError
        On any transport or write error. The partial file is removed.
    """
    task = None

    try:
        with client.stream("GET", url, follow_redirects=True) as response:
            response.raise_for_status()

            content_length = response.headers.get("Content-Length")
            if content_length and content_length.isdigit():
                total = int(content_length)

            if progress is not None:
                task = progress.add_task("downloading", total=total)

            with destination.open("wb") as f:
                for chunk in response.iter_bytes(CHUNK_SIZE):
                    f.write(chunk)
                    if progress is not None and task is not None:
                        progress.advance(task, len(chunk))
                f.flush()
                os.fsync(f.fileno())

    except httpx.HTTPStatusError as e:
        destination.unlink(missing_ok=True)
        raise AcquisitionError(
            f"Archive download failed ({e.response.status_code}): {url}"
        ) from e
    except httpx.HTTPError as e:
        destination.unlink(missing_ok=True)
        raise AcquisitionError(f"Archive download from {url} was interrupted: {e}") from e
    except OSError as e:
        destination.unlink(missing_ok=True)
        raise AcquisitionError(f"Could not write archive to {destination}: {e}") from e

    return destination


def acquire_archive(
    client: httpx.Client,
    descriptor: TemplateDescriptor,
    working_dir: Path,
    fallback_branch: str = "master",
    progress: Progress | None = None,
    token: str | None = None,
) -> Path:
    """
    Download a template's archive into ``working_dir``.

    The branch is the descriptor's own ``branch`` if set, otherwise the
    repository's default branch from its metadata, otherwise
    ``fallback_branch``.

    Returns
    -------
    Path
        Path of the complete local archive.
    """
    metadata = fetch_metadata(client, descriptor, token=token)
    branch = descriptor.branch or metadata.default_branch or fallback_branch

    return download_archive(
        client,
        descriptor.archive_url(branch),
        working_dir / ARCHIVE_FILENAME,
        total=metadata.size_bytes,
        progress=progress,
    )
