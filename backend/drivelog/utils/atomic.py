"""
Atomic file writes.

Content goes to a temporary file in the destination folder and is moved
into place in one step, so readers see either the old file or the
complete new one. Without overwrite the temporary file is hard-linked to
the destination, which fails if the name is already taken.
"""

import os
import tempfile
from pathlib import Path

TMP_SUFFIX = ".tmp"


def atomic_write_text(path: Path, text: str, overwrite: bool = True) -> Path:
    """
    Write text to path atomically.

    Args:
        path: Destination file
        text: Content to write (UTF-8)
        overwrite: If False, raise FileExistsError when path already exists

    Returns:
        The destination path
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=TMP_SUFFIX, dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        if overwrite:
            os.replace(tmp_name, path)
        else:
            try:
                os.link(tmp_name, path)
            except FileExistsError:
                raise FileExistsError(f"Refusing to overwrite {path}") from None
    finally:
        Path(tmp_name).unlink(missing_ok=True)

    return path
