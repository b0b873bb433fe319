"""JSON artifact I/O shared by the diff and result files.

Artifacts are the only hand-off between pipeline phases, so writes are
atomic: a temporary file in the target directory is renamed over the
destination with os.replace().
"""

import json
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from wintidy.core.errors import DiffFileError


def write_json_atomic(path: Path, data: Any) -> Path:
    """Write JSON data to a file atomically.

    Args:
        path: Destination file.
        data: JSON-serializable data.

    Returns:
        The destination path.

    Raises:
        DiffFileError: If the file cannot be written.
    """
    tmp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise DiffFileError(f"Failed to write {path}: {e}") from e
    return path


def read_json(path: Path) -> Any:
    """Read a JSON artifact.

    Raises:
        DiffFileError: If the file is missing, unreadable, or not valid JSON.
    """
    if not path.exists():
        raise DiffFileError(f"Artifact not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise DiffFileError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise DiffFileError(f"Failed to read {path}: {e}") from e
