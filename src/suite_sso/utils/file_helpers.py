"""Shared file utilities for suite-sso.

- get_app_dir: OS-appropriate configuration directory
- set_secure_permissions: Owner-only file/directory permissions
- require_file_exists: FileNotFoundError with an init hint
- load_validated_json: JSON file -> validated pydantic model
- write_json_atomic: Replace a JSON file without leaving partial writes
"""

from __future__ import annotations

__all__ = [
    "get_app_dir",
    "load_validated_json",
    "require_file_exists",
    "set_secure_permissions",
    "write_json_atomic",
]

import json
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, TypeVar

import click
from pydantic import BaseModel, ValidationError

from suite_sso.constants import APP_NAME

T = TypeVar("T", bound=BaseModel)


def get_app_dir() -> Path:
    """Get the OS-appropriate application directory.

    Uses click.get_app_dir() which returns:
    - macOS: ~/Library/Application Support/suite-sso
    - Linux: ~/.config/suite-sso (XDG compliant)
    - Windows: C:\\Users\\<user>\\AppData\\Roaming\\suite-sso
    """
    return Path(click.get_app_dir(APP_NAME))


def set_secure_permissions(path: Path, *, is_directory: bool = False) -> None:
    """Restrict a file (0o600) or directory (0o700) to its owner.

    No-op on Windows; permission errors are ignored.
    """
    if sys.platform == "win32":
        return

    try:
        path.chmod(0o700 if is_directory else 0o600)
    except OSError:
        pass  # Some filesystems refuse chmod


def require_file_exists(file_path: Path, file_type: str = "file", init_hint: bool = True) -> None:
    """Raise FileNotFoundError with a helpful message if the file is missing."""
    if file_path.exists():
        return

    hint = f"\nRun 'suite-sso init' to create a {file_type} file." if init_hint else ""
    raise FileNotFoundError(f"{file_type.capitalize()} file not found at {file_path}.{hint}")


def load_validated_json(
    file_path: Path,
    model_class: type[T],
    file_type: str = "file",
    recovery_hint: str | None = None,
) -> T:
    """Load a JSON file and validate it against a pydantic model.

    Args:
        file_path: Path to JSON file.
        model_class: Pydantic model class to validate against.
        file_type: Description for error messages (e.g., "config").
        recovery_hint: Optional hint appended to validation errors.

    Returns:
        Validated model instance.

    Raises:
        ValueError: If the file is unreadable, not JSON, or fails validation.
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_type} file {file_path}: {e}") from e
    except OSError as e:
        raise ValueError(f"Could not read {file_type} file {file_path}: {e}") from e

    try:
        return model_class.model_validate(data)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"  - {loc}: {error['msg']}")
        message = f"Invalid {file_type} file {file_path}:\n" + "\n".join(errors)
        if recovery_hint:
            message += f"\n{recovery_hint}"
        raise ValueError(message) from e


def write_json_atomic(file_path: Path, data: Any) -> None:
    """Write JSON to ``file_path`` via a temp file and rename.

    Readers in other processes see either the old or the new content, never a
    truncated file. Concurrent writers are last-writer-wins.
    """
    file_path.parent.mkdir(parents=True, exist_ok=True)
    set_secure_permissions(file_path.parent, is_directory=True)

    fd, tmp_name = tempfile.mkstemp(dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(tmp_name, file_path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise
    set_secure_permissions(file_path)
