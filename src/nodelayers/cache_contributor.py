"""Persists the package manager's own download cache between builds."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from nodelayers.fingerprint import Fingerprint
from nodelayers.fsutil import copy_directory, ensure_directory, file_exists, remove_tree
from nodelayers.layers.base import Layer
from nodelayers.models import CACHE_DIR, LayerFlag


@dataclass(slots=True)
class NpmCacheContributor:
    application_root: Path
    layer: Layer
    fingerprint: Fingerprint

    def contribute(self) -> bool:
        return self.layer.contribute(self.fingerprint, self._contribute_cache, LayerFlag.CACHE)

    def _contribute_cache(self, layer: Layer) -> None:
        ensure_directory(layer.root)
        npm_cache = self.application_root / CACHE_DIR
        if not file_exists(npm_cache):
            return
        copy_directory(npm_cache, layer.root / CACHE_DIR)
        remove_tree(npm_cache)
