"""Layer fingerprint derivation from the application's lock file."""

from __future__ import annotations

import hashlib
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from nodelayers.errors import FilesystemError
from nodelayers.fsutil import file_exists
from nodelayers.models import PACKAGE_LOCK


@dataclass(frozen=True, slots=True)
class Fingerprint:
    """Identity of a layer's contents, compared across builds."""

    name: str
    hash: str

    def identity(self) -> tuple[str, str]:
        return self.name, self.hash

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "hash": self.hash}


def compute_fingerprint(
    application_root: str | Path,
    *,
    name: str,
    lock_file: str = PACKAGE_LOCK,
    clock: Callable[[], int] = time.time_ns,
) -> Fingerprint:
    """Hash the lock file, or fall back to the current time when there is none.

    The time-based fallback never matches a previous build, so applications
    without a lock file are always contributed from scratch.
    """
    lock_path = Path(application_root) / lock_file
    if not file_exists(lock_path):
        return Fingerprint(name=name, hash=format(clock(), "x"))

    try:
        payload = lock_path.read_bytes()
    except OSError as exc:
        raise FilesystemError(
            "Unable to read lock file.",
            context={"operation": "read", "source": str(lock_path), "error": str(exc)},
        ) from exc
    return Fingerprint(name=name, hash=hashlib.sha256(payload).hexdigest())
