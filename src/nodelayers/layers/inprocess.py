"""In-process layer store for testing and development.

Layer roots are real directories so contributions can copy into them, but
fingerprints, flags, environment and launch metadata are held in memory.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from nodelayers.fingerprint import Fingerprint
from nodelayers.fsutil import ensure_directory, remove_tree
from nodelayers.layers.base import Layer
from nodelayers.models import ApplicationMetadata, LayerFlag
from nodelayers.observability import StructuredLogger


@dataclass(slots=True)
class InProcessLayer:
    name: str
    root: Path
    logger: StructuredLogger
    fingerprint: Fingerprint | None = None
    flags: tuple[LayerFlag, ...] = ()
    env: dict[str, str] = field(default_factory=dict)
    contributions: int = 0

    def contribute(
        self,
        fingerprint: Fingerprint,
        contribution: Callable[[Layer], None],
        *flags: LayerFlag,
    ) -> bool:
        self.flags = tuple(flags)
        if self.fingerprint == fingerprint:
            self.logger.info(
                operation="layer_reuse",
                layer=self.name,
                message=f"{fingerprint.name}: Reusing cached layer",
            )
            return False

        self.logger.info(
            operation="layer_contribute",
            layer=self.name,
            message=f"{fingerprint.name}: Contributing to layer",
        )
        self.fingerprint = None
        remove_tree(self.root)
        ensure_directory(self.root)
        contribution(self)
        self.fingerprint = fingerprint
        self.contributions += 1
        return True

    def override_shared_env(self, name: str, value: str) -> None:
        self.env[f"{name}.override"] = value

    def append_path_shared_env(self, name: str, value: str) -> None:
        self.env[f"{name}.append"] = value


@dataclass(slots=True)
class InProcessLayerStore:
    """Layer store that keeps fingerprints in memory across simulated builds."""

    root: Path
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    layers: dict[str, InProcessLayer] = field(default_factory=dict)
    application_metadata: list[ApplicationMetadata] = field(default_factory=list)

    def layer(self, name: str) -> InProcessLayer:
        if name not in self.layers:
            self.layers[name] = InProcessLayer(
                name=name,
                root=Path(self.root) / name,
                logger=self.logger,
            )
        return self.layers[name]

    def write_application_metadata(self, metadata: ApplicationMetadata) -> None:
        self.application_metadata.append(metadata)
