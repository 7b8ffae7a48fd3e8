"""Core typed dataclasses for build plans, layer flags and launch metadata."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Self

from nodelayers.errors import BuildPlanError

DEPENDENCY = "node_modules"
CACHE = "cache"
MODULES_DIR = "node_modules"
MODULES_META_NAME = "Node Modules"
CACHE_DIR = "npm-cache"
CACHE_META_NAME = "NPM Cache"
PACKAGE_LOCK = "package-lock.json"


class LayerFlag(StrEnum):
    """Purpose flags controlling where a layer is visible."""

    BUILD = "build"
    LAUNCH = "launch"
    CACHE = "cache"


@dataclass(frozen=True, slots=True)
class BuildPlanEntry:
    version: str = ""
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class BuildPlan:
    """Requirements negotiated before the build, keyed by dependency name."""

    entries: dict[str, list[BuildPlanEntry]] = field(default_factory=dict)

    def add(self, name: str, *, version: str = "", **metadata: Any) -> Self:
        self.entries.setdefault(name, []).append(
            BuildPlanEntry(version=version, metadata=dict(metadata)),
        )
        return self

    def shallow_merged(self, name: str) -> BuildPlanEntry | None:
        """Merge every entry for *name*; later metadata keys win."""
        entries = self.entries.get(name)
        if not entries:
            return None
        version = ""
        metadata: dict[str, Any] = {}
        for entry in entries:
            if entry.version:
                version = entry.version
            metadata.update(entry.metadata)
        return BuildPlanEntry(version=version, metadata=metadata)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> BuildPlan:
        plan = cls()
        for name, raw in payload.items():
            records = raw if isinstance(raw, list) else [raw]
            for record in records:
                plan.entries.setdefault(name, []).append(_parse_entry(name, record))
        return plan


@dataclass(frozen=True, slots=True)
class DependencyRequirement:
    build: bool = False
    launch: bool = False

    @classmethod
    def from_entry(cls, entry: BuildPlanEntry) -> DependencyRequirement:
        return cls(
            build=entry.metadata.get("build") is True,
            launch=entry.metadata.get("launch") is True,
        )

    def flags(self) -> tuple[LayerFlag, ...]:
        flags = [LayerFlag.CACHE]
        if self.build:
            flags.append(LayerFlag.BUILD)
        if self.launch:
            flags.append(LayerFlag.LAUNCH)
        return tuple(flags)


@dataclass(frozen=True, slots=True)
class Process:
    type: str
    command: str
    direct: bool = False


@dataclass(frozen=True, slots=True)
class ApplicationMetadata:
    processes: tuple[Process, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "processes": [
                {"type": process.type, "command": process.command, "direct": process.direct}
                for process in self.processes
            ],
        }


def _parse_entry(name: str, record: Any) -> BuildPlanEntry:
    if not isinstance(record, Mapping):
        raise BuildPlanError(
            "Build plan entry must be a mapping.",
            context={"dependency": name, "entry": repr(record)},
        )
    version = record.get("version", "")
    metadata = record.get("metadata", {})
    if not isinstance(version, str):
        raise BuildPlanError(
            "Build plan entry `version` must be a string.",
            context={"dependency": name},
        )
    if not isinstance(metadata, Mapping):
        raise BuildPlanError(
            "Build plan entry `metadata` must be a mapping.",
            context={"dependency": name},
        )
    return BuildPlanEntry(version=version, metadata=dict(metadata))
