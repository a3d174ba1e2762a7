"""Keeps note paths inside the base directory, and moves the process between directories safely."""

from __future__ import annotations
from contextlib import contextmanager
import logging
import os
import os.path
from pathlib import Path
from typing import Iterator, Union
from jot.errors import PathOutsideBaseDirectory, WorkingDirectoryChangeFailure

LOG = logging.getLogger(__name__)

PathIsh = Union[str, os.PathLike]


def is_within(path: PathIsh, base_dir: PathIsh) -> bool:
    """True if path is base_dir or one of its descendants, judged lexically (``..`` is collapsed)."""
    path = os.path.normpath(path)
    base_dir = os.path.normpath(base_dir)
    return path == base_dir or path.startswith(base_dir.rstrip(os.sep) + os.sep)


def resolve_path(candidate: PathIsh, base_dir: PathIsh) -> Path:
    """Returns the absolute path for a user-supplied path.

    Relative paths are taken relative to base_dir, so ``foo/bar.md`` becomes ``<base_dir>/foo/bar.md``.
    Absolute paths are returned unchanged.

    Raises :exc:`jot.errors.PathOutsideBaseDirectory` if the result would not be below base_dir.
    This does not touch the filesystem.
    """
    candidate = Path(candidate)
    resolved = candidate if candidate.is_absolute() else Path(base_dir, candidate)
    if not is_within(resolved, base_dir):
        raise PathOutsideBaseDirectory(candidate, base_dir)
    return resolved


def _chdir(target: PathIsh) -> None:
    try:
        os.chdir(target)
    except OSError as e:
        raise WorkingDirectoryChangeFailure(target, e) from e


@contextmanager
def working_directory(target: PathIsh) -> Iterator[Path]:
    """Changes the process's working directory for the duration of the block.

    The previous working directory is restored however the block exits. Failing to change in either
    direction raises :exc:`jot.errors.WorkingDirectoryChangeFailure`.
    """
    previous = os.getcwd()
    LOG.debug('Entering %s', target)
    _chdir(target)
    try:
        yield Path(target)
    finally:
        LOG.debug('Returning to %s', previous)
        _chdir(previous)
