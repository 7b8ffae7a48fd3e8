"""Protocols for layer persistence."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from nodelayers.fingerprint import Fingerprint
from nodelayers.models import ApplicationMetadata, LayerFlag


class Layer(Protocol):
    name: str
    root: Path

    def contribute(
        self,
        fingerprint: Fingerprint,
        contribution: Callable[[Layer], None],
        *flags: LayerFlag,
    ) -> bool:
        """Run *contribution* only when *fingerprint* differs from the stored one.

        Returns ``True`` when the layer was contributed and ``False`` on reuse.
        """

    def override_shared_env(self, name: str, value: str) -> None:
        """Set *name* to *value* for both build and launch processes."""

    def append_path_shared_env(self, name: str, value: str) -> None:
        """Append *value* to the path list in *name* for build and launch."""


class LayerStore(Protocol):
    def layer(self, name: str) -> Layer:
        """Return the handle for the layer called *name*."""

    def write_application_metadata(self, metadata: ApplicationMetadata) -> None:
        """Persist the launch process table."""
