"""Atomic file operations for the exchange directory.

Writers go through a dot-prefixed temp file plus rename so readers globbing
for exchange files never observe a partial write. Readers claim a file by
renaming it before consuming it, so each file is consumed at most once.
"""

from __future__ import annotations

import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Optional

from catalog_coverage.utils.logging import get_logger

logger = get_logger("utils.atomic")


class AtomicWriteError(Exception):
    """Raised when an atomic write operation fails."""

    pass


@contextmanager
def atomic_write(
    path: Path,
    encoding: str = "utf-8",
) -> Generator[Any, None, None]:
    """
    Context manager for atomic file writes.

    Writes to a temporary file first, then atomically renames to the target path.
    If any error occurs, the temp file is cleaned up and the original is untouched.

    Args:
        path: Target file path
        encoding: Text encoding

    Yields:
        File handle for writing

    Raises:
        AtomicWriteError: If the atomic write fails
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    # Same directory as the target so the rename stays on one filesystem
    fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
    )

    temp_path = Path(temp_path)
    success = False

    try:
        os.close(fd)

        with open(temp_path, "w", encoding=encoding) as f:
            yield f

        temp_path.replace(path)
        success = True

        logger.debug("atomic_write_success", path=str(path))

    except Exception as e:
        logger.error("atomic_write_failed", path=str(path), error=str(e))
        raise AtomicWriteError(f"Failed to atomically write {path}: {e}") from e

    finally:
        if not success and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass


def atomic_write_json(
    path: Path,
    data: Any,
    indent: Optional[int] = None,
    encoding: str = "utf-8",
) -> None:
    """
    Atomically write JSON data to a file.

    Args:
        path: Target file path
        data: Data to serialize as JSON
        indent: JSON indentation level
        encoding: Text encoding
    """
    with atomic_write(path, encoding=encoding) as f:
        json.dump(data, f, indent=indent)
        f.write("\n")


def claim_file(path: Path, owner: str) -> Optional[Path]:
    """
    Take exclusive ownership of a file by renaming it.

    Args:
        path: File to claim
        owner: Suffix identifying the claiming process

    Returns:
        The claimed path, or None if the file was already gone
        (consumed by another process)
    """
    path = Path(path)
    claimed = path.with_name(f"{path.name}.{owner}.claimed")
    try:
        path.rename(claimed)
    except FileNotFoundError:
        logger.info("claim_lost", path=str(path), owner=owner)
        return None

    logger.debug("claim_acquired", path=str(claimed))
    return claimed


def release_file(path: Path) -> None:
    """Delete a consumed file; a file that is already gone is not an error."""
    try:
        Path(path).unlink()
    except FileNotFoundError:
        logger.info("release_missing", path=str(path))
