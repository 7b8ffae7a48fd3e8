"""Per-build inputs handed to contributors."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from nodelayers.layers.base import LayerStore
from nodelayers.models import BuildPlan
from nodelayers.observability import StructuredLogger


@dataclass(slots=True)
class BuildContext:
    application_root: Path
    plan: BuildPlan
    layers: LayerStore
    logger: StructuredLogger = field(default_factory=StructuredLogger)
