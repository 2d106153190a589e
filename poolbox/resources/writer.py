"""Atomic file writes."""

import contextlib
import os
import tempfile
from pathlib import Path


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write data to path through a temp file in the same directory.

    Parent directories are created as needed. Readers never observe a
    partially written file; on failure the temp file is removed and the
    original error propagates.

    Args:
        path: Destination file
        data: Exact bytes to write
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        if path.exists():
            os.chmod(tmp_path, path.stat().st_mode & 0o7777)
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise


def atomic_write_text(path: Path, text: str) -> None:
    """Encode text as UTF-8 without newline translation and write atomically."""
    atomic_write_bytes(path, text.encode("utf-8"))
