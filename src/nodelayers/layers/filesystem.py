"""On-disk layer store with fingerprint metadata beside each layer root.

Each layer ``<name>`` lives in ``<root>/<name>/`` with its metadata at
``<root>/<name>.json``. Metadata is written only after a contribution
succeeds, so an interrupted build leaves no fingerprint behind and the next
build contributes the layer again.
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from nodelayers.errors import EnvironmentExportError, FilesystemError, LayerError
from nodelayers.fingerprint import Fingerprint
from nodelayers.fsutil import ensure_directory, remove_tree
from nodelayers.layers.base import Layer
from nodelayers.models import ApplicationMetadata, LayerFlag
from nodelayers.observability import StructuredLogger


@dataclass(slots=True)
class FilesystemLayer:
    name: str
    root: Path
    metadata_path: Path
    logger: StructuredLogger

    def contribute(
        self,
        fingerprint: Fingerprint,
        contribution: Callable[[Layer], None],
        *flags: LayerFlag,
    ) -> bool:
        stored = self._read_metadata()
        if stored is not None and stored.get("metadata") == fingerprint.to_dict():
            self.logger.info(
                operation="layer_reuse",
                layer=self.name,
                message=f"{fingerprint.name} {fingerprint.hash[:12]}: Reusing cached layer",
            )
            self._write_metadata(fingerprint, flags)
            return False

        self.logger.info(
            operation="layer_contribute",
            layer=self.name,
            message=f"{fingerprint.name} {fingerprint.hash[:12]}: Contributing to layer",
        )
        self._remove_metadata()
        remove_tree(self.root)
        ensure_directory(self.root)
        contribution(self)
        self._write_metadata(fingerprint, flags)
        return True

    def override_shared_env(self, name: str, value: str) -> None:
        self._write_env(f"{name}.override", value)

    def append_path_shared_env(self, name: str, value: str) -> None:
        self._write_env(f"{name}.append", value)
        self._write_env(f"{name}.delim", os.pathsep)

    def _write_env(self, filename: str, value: str) -> None:
        env_path = self.root / "env" / filename
        try:
            env_path.parent.mkdir(parents=True, exist_ok=True)
            env_path.write_text(value, encoding="utf-8")
        except OSError as exc:
            raise EnvironmentExportError(
                "Unable to write layer environment file.",
                context={"layer": self.name, "path": str(env_path), "error": str(exc)},
            ) from exc

    def _read_metadata(self) -> dict[str, Any] | None:
        if not self.metadata_path.exists():
            return None
        try:
            parsed = json.loads(self.metadata_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise LayerError(
                "Layer metadata is unreadable or not valid JSON.",
                hint="Delete the layer metadata file and rebuild.",
                context={"layer": self.name, "path": str(self.metadata_path), "error": str(exc)},
            ) from exc
        if not isinstance(parsed, dict):
            raise LayerError(
                "Layer metadata has invalid structure.",
                hint="Delete the layer metadata file and rebuild.",
                context={"layer": self.name, "path": str(self.metadata_path)},
            )
        return parsed

    def _write_metadata(self, fingerprint: Fingerprint, flags: tuple[LayerFlag, ...]) -> None:
        payload: dict[str, Any] = {"metadata": fingerprint.to_dict()}
        for flag in LayerFlag:
            payload[flag.value] = flag in flags
        try:
            self.metadata_path.write_text(
                json.dumps(payload, indent=2, sort_keys=True) + "\n",
                encoding="utf-8",
            )
        except OSError as exc:
            raise FilesystemError(
                "Unable to write layer metadata.",
                context={
                    "operation": "write",
                    "destination": str(self.metadata_path),
                    "error": str(exc),
                },
            ) from exc

    def _remove_metadata(self) -> None:
        try:
            self.metadata_path.unlink(missing_ok=True)
        except OSError as exc:
            raise FilesystemError(
                "Unable to remove stale layer metadata.",
                context={"operation": "remove", "source": str(self.metadata_path)},
            ) from exc


@dataclass(slots=True)
class FilesystemLayerStore:
    root: Path
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def __post_init__(self) -> None:
        self.root = Path(self.root)
        ensure_directory(self.root)

    def layer(self, name: str) -> FilesystemLayer:
        return FilesystemLayer(
            name=name,
            root=self.root / name,
            metadata_path=self.root / f"{name}.json",
            logger=self.logger,
        )

    def write_application_metadata(self, metadata: ApplicationMetadata) -> None:
        launch_path = self.root / "launch.json"
        try:
            launch_path.write_text(
                json.dumps(metadata.to_dict(), indent=2, sort_keys=True) + "\n",
                encoding="utf-8",
            )
        except OSError as exc:
            raise FilesystemError(
                "Unable to write application metadata.",
                context={"operation": "write", "destination": str(launch_path)},
            ) from exc
