"""Pure Python extraction cache for distribution archives (no Pants dependencies).

An archive ``<dir>/ideaIC-<version>.zip`` is extracted next to itself:

    <dir>/
        ideaIC-<version>.zip
        ideaIC-<version>/
            markerFile          (created last; present iff extraction completed)
            lib/...
            plugins/...

The marker file is the only trusted signal. A directory without it is
left over from an interrupted or failed extraction and is rebuilt from
scratch.

Two processes extracting the same archive concurrently are not
serialized: the marker check and marker creation are not atomic.
"""

from __future__ import annotations

import logging
import os
import posixpath
import shutil
import zipfile
from pathlib import Path
from typing import Union

from pants_intellij_plugin._exceptions import ExtractionError
from pants_intellij_plugin._types import CachedDistribution

logger = logging.getLogger(__name__)

MARKER_FILE_NAME = "markerFile"

_ARCHIVE_ERRORS = (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, OSError)


def cache_directory_for(archive_path: Union[str, Path]) -> Path:
    """Return the extraction directory: the archive path without its extension.

    Example: cache_directory_for("/cache/ideaIC-2023.1.zip")
             -> Path("/cache/ideaIC-2023.1")
    """
    archive_path = Path(archive_path)
    if not archive_path.suffix:
        raise ExtractionError(archive_path, "archive file name has no extension")
    return archive_path.with_suffix("")


def is_extracted(directory: Path) -> bool:
    return (directory / MARKER_FILE_NAME).is_file()


def invalidate_extraction(archive_path: Union[str, Path]) -> bool:
    """Drop the marker of the extraction made from ``archive_path``, if any.

    Called before an archive is replaced in place so that the next
    ``ensure_extracted`` rebuilds the directory from the new contents.
    Returns True if a marker was removed.
    """
    archive_path = Path(archive_path)
    if not archive_path.suffix:
        return False
    marker = cache_directory_for(archive_path) / MARKER_FILE_NAME
    try:
        marker.unlink()
    except FileNotFoundError:
        return False
    logger.info("Invalidated extraction of %s", archive_path.name)
    return True


def ensure_extracted(archive_path: Union[str, Path]) -> CachedDistribution:
    """Make sure ``archive_path`` is fully extracted and return the result.

    Raises:
        ExtractionError: If the archive cannot be read or the directory
            cannot be written. No marker is left behind in that case.
    """
    archive_path = Path(archive_path)
    directory = cache_directory_for(archive_path)

    if is_extracted(directory):
        logger.debug("Using extracted distribution at %s", directory)
        return CachedDistribution(
            archive_path=archive_path,
            extracted_directory=directory,
            marker_present=True,
        )

    try:
        if directory.exists() or directory.is_symlink():
            logger.info("Discarding incomplete extraction at %s", directory)
            _remove(directory)
        directory.mkdir(parents=True)

        logger.info("Unzipping %s", archive_path.name)
        _extract_zip(archive_path, directory)
        (directory / MARKER_FILE_NAME).touch()
    except ExtractionError:
        _remove_partial(directory)
        raise
    except _ARCHIVE_ERRORS as e:
        _remove_partial(directory)
        raise ExtractionError(archive_path, str(e)) from e
    except BaseException:
        _remove_partial(directory)
        raise

    logger.info("Unzipped %s into %s", archive_path.name, directory)
    return CachedDistribution(
        archive_path=archive_path,
        extracted_directory=directory,
        marker_present=True,
    )


def _extract_zip(archive_path: Path, directory: Path) -> None:
    root = directory.resolve()
    with zipfile.ZipFile(archive_path) as archive:
        for info in archive.infolist():
            if posixpath.normpath(info.filename) == MARKER_FILE_NAME:
                # Only a completed extraction may create the marker.
                logger.debug("Skipping archive entry %s", info.filename)
                continue
            target = (root / info.filename).resolve()
            if target != root and root not in target.parents:
                raise ExtractionError(
                    archive_path, f"entry {info.filename!r} escapes the target directory"
                )
            extracted = archive.extract(info, root)
            _restore_mode(info, extracted)


def _restore_mode(info: zipfile.ZipInfo, extracted: str) -> None:
    # Unix permission bits live in the high word of external_attr.
    mode = (info.external_attr >> 16) & 0o777
    if mode and not info.is_dir():
        os.chmod(extracted, mode)


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def _remove_partial(directory: Path) -> None:
    if directory.is_dir() and not directory.is_symlink():
        shutil.rmtree(directory, ignore_errors=True)
