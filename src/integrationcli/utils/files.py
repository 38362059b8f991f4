# ABOUTME: Local file helpers for exports and imports
# ABOUTME: Folder checks, artifact writes, and reads of user-supplied files

"""File helpers."""

from __future__ import annotations

from pathlib import Path

from integrationcli.errors import FileWriteError, InputValidationError


def ensure_folder(folder: str | Path) -> Path:
    """Return ``folder`` as a Path, raising if it is not an existing directory."""
    path = Path(folder)
    if not path.is_dir():
        raise InputValidationError(f"folder {folder} does not exist or is not a directory")
    return path


def write_bytes(path: str | Path, data: bytes) -> Path:
    """Write ``data`` to ``path``, replacing any existing file."""
    target = Path(path)
    try:
        target.write_bytes(data)
    except OSError as e:
        raise FileWriteError(str(target), e) from e
    return target


def read_file(path: str | Path) -> bytes:
    """Read a user-supplied input file."""
    source = Path(path)
    if not source.is_file():
        raise InputValidationError(f"unable to open file {path}")
    return source.read_bytes()
