"""Shared test fixtures."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from nodelayers.build import BuildContext
from nodelayers.errors import PackageManagerError
from nodelayers.layers.inprocess import InProcessLayerStore
from nodelayers.models import MODULES_DIR, BuildPlan
from nodelayers.observability import StructuredLogger


@dataclass(slots=True)
class RecordingPackageManager:
    """Package manager fake that records calls and writes a small tree."""

    calls: list[tuple[str, tuple[Path, ...]]] = field(default_factory=list)
    installed_packages: tuple[str, ...] = ("left-pad",)
    fail_on: str | None = None
    check_error: Exception | None = None

    def install(self, layer_root: Path, cache_root: Path, app_root: Path) -> None:
        self.calls.append(("install", (layer_root, cache_root, app_root)))
        self._maybe_fail("install")
        for package in self.installed_packages:
            package_dir = app_root / MODULES_DIR / package
            package_dir.mkdir(parents=True, exist_ok=True)
            (package_dir / "index.js").write_text(f"module.exports = '{package}';\n")

    def rebuild(self, cache_root: Path, app_root: Path) -> None:
        self.calls.append(("rebuild", (cache_root, app_root)))
        self._maybe_fail("rebuild")
        (app_root / MODULES_DIR / ".rebuilt").write_text("yes\n")

    def warn_unmet_dependencies(self, app_root: Path) -> None:
        self.calls.append(("warn_unmet_dependencies", (app_root,)))
        if self.check_error is not None:
            raise self.check_error

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    def _maybe_fail(self, operation: str) -> None:
        if self.fail_on == operation:
            raise PackageManagerError(f"{operation} exploded")


@pytest.fixture
def package_manager_factory() -> type[RecordingPackageManager]:
    return RecordingPackageManager


@pytest.fixture
def package_manager(
    package_manager_factory: type[RecordingPackageManager],
) -> RecordingPackageManager:
    return package_manager_factory()


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger()


@pytest.fixture
def layer_store(tmp_path: Path, logger: StructuredLogger) -> InProcessLayerStore:
    return InProcessLayerStore(root=tmp_path / "layers", logger=logger)


@pytest.fixture
def app_root(tmp_path: Path) -> Path:
    root = tmp_path / "app"
    root.mkdir()
    (root / "package.json").write_text('{"name":"x"}', encoding="utf-8")
    return root


@pytest.fixture
def build_context(
    app_root: Path,
    layer_store: InProcessLayerStore,
    logger: StructuredLogger,
) -> BuildContext:
    plan = BuildPlan().add("node_modules", build=True, launch=True)
    return BuildContext(application_root=app_root, plan=plan, layers=layer_store, logger=logger)
