"""Filesystem helpers whose failures carry the paths involved."""

from __future__ import annotations

import shutil
from pathlib import Path

from nodelayers.errors import FilesystemError


def file_exists(path: Path) -> bool:
    try:
        path.stat()
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise FilesystemError(
            f"Unable to stat {path.name}.",
            context={"operation": "stat", "source": str(path), "error": str(exc)},
        ) from exc
    return True


def has_subdirs(path: Path) -> bool:
    """Return whether *path* holds at least one directory; a missing path holds none."""
    try:
        children = list(path.iterdir())
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise FilesystemError(
            f"Unable to list {path.name}.",
            context={"operation": "list", "source": str(path), "error": str(exc)},
        ) from exc
    return any(child.is_dir() for child in children)


def copy_directory(source: Path, destination: Path) -> None:
    try:
        shutil.copytree(source, destination, symlinks=True, dirs_exist_ok=True)
    except (OSError, shutil.Error) as exc:
        raise FilesystemError(
            f'Unable to copy "{source}" to "{destination}".',
            context={
                "operation": "copy",
                "source": str(source),
                "destination": str(destination),
                "error": str(exc),
            },
        ) from exc


def remove_tree(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return
    except OSError as exc:
        raise FilesystemError(
            f"Unable to remove {path.name}.",
            context={"operation": "remove", "source": str(path), "error": str(exc)},
        ) from exc


def ensure_directory(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(
            f"Unable to create {path.name}.",
            context={"operation": "mkdir", "destination": str(path), "error": str(exc)},
        ) from exc
