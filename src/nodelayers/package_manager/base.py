"""Typed interfaces for package-manager adapters."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True, slots=True)
class PackageManagerConfig:
    tool: str = "npm"
    verbose: bool = False
    env: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_environ(cls, environ: Mapping[str, str], *, tool: str = "npm") -> PackageManagerConfig:
        verbose = environ.get("NODE_VERBOSE", "").strip().lower() in {"1", "true", "yes"}
        return cls(tool=tool, verbose=verbose)

    def subprocess_env(self, base: Mapping[str, str]) -> dict[str, str]:
        """Environment for one adapter call; *base* is never mutated."""
        env = dict(base)
        env.update(self.env)
        if self.verbose:
            env["NODE_VERBOSE"] = "true"
        return env


class PackageManager(Protocol):
    def install(self, layer_root: Path, cache_root: Path, app_root: Path) -> None:
        """Install dependencies for *app_root* from scratch."""

    def rebuild(self, cache_root: Path, app_root: Path) -> None:
        """Rebuild the dependency tree already vendored in *app_root*."""

    def warn_unmet_dependencies(self, app_root: Path) -> None:
        """Report unmet dependencies; raise only if the check cannot run."""
