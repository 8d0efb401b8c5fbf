# src/eisenq/tasks/atomic_io.py

"""
Write-temp-then-rename JSON persistence.

The live file is only ever replaced by os.replace() of a fully written and
fsynced sibling temp file, so readers see either the old or the new document.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def temp_path_for(path: Path) -> Path:
    return path.with_name(path.name + ".tmp")


def _fsync_dir(directory: Path) -> None:
    # Best-effort: not every platform allows opening a directory.
    with contextlib.suppress(OSError):
        fd = os.open(str(directory), os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)


def atomic_write_json(path: str | Path, data: Any) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = temp_path_for(path)

    payload = json.dumps(data, ensure_ascii=False, indent=2)
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(payload)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except OSError:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise

    _fsync_dir(path.parent)
    logger.debug("Wrote %s (%d bytes)", path, len(payload))


def read_json(path: str | Path, default: Any) -> Any:
    """Return the parsed document, or default when the file does not exist."""
    path = Path(path)
    if not path.exists():
        return default
    return json.loads(path.read_text("utf-8"))
