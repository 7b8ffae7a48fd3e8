"""Decides whether node_modules is reused, installed fresh or rebuilt.

The contributor fingerprints the lock file, hands the fingerprint to the
layer store, and only on a mismatch runs the package manager. A
``node_modules`` directory that already contains packages is treated as
vendored and rebuilt in place; anything else is installed from scratch.
The resulting tree is moved out of the application into the layer and the
layer exports ``NODE_PATH`` and ``PATH`` for build and launch.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from nodelayers.build import BuildContext
from nodelayers.cache_contributor import NpmCacheContributor
from nodelayers.errors import DiagnosticError, NodeLayersError, PackageManagerError
from nodelayers.fingerprint import Fingerprint, compute_fingerprint
from nodelayers.fsutil import copy_directory, file_exists, has_subdirs, remove_tree
from nodelayers.layers.base import Layer, LayerStore
from nodelayers.models import (
    CACHE,
    CACHE_META_NAME,
    DEPENDENCY,
    MODULES_DIR,
    MODULES_META_NAME,
    ApplicationMetadata,
    DependencyRequirement,
    Process,
)
from nodelayers.observability import StructuredLogger
from nodelayers.package_manager.base import PackageManager

VENDOR_TIP = "It is recommended to vendor the application's Node.js dependencies"


class Outcome(StrEnum):
    REUSED = "reused"
    INSTALLED = "installed"
    REBUILT = "rebuilt"
    CONTRIBUTED = "contributed"


@dataclass(frozen=True, slots=True)
class ContributionReport:
    modules: Outcome
    cache: Outcome
    modules_fingerprint: Fingerprint
    cache_fingerprint: Fingerprint


@dataclass(slots=True)
class ModulesContributor:
    application_root: Path
    requirement: DependencyRequirement
    package_manager: PackageManager
    layers: LayerStore
    modules_layer: Layer
    cache_layer: Layer
    modules_fingerprint: Fingerprint
    cache_fingerprint: Fingerprint
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    start_command: str = "npm start"
    _modules_outcome: Outcome = field(init=False, default=Outcome.REUSED, repr=False)

    @classmethod
    def from_build(
        cls,
        context: BuildContext,
        package_manager: PackageManager,
        *,
        clock: Callable[[], int] = time.time_ns,
    ) -> ModulesContributor | None:
        """Return a contributor, or ``None`` when the plan does not request node_modules."""
        entry = context.plan.shallow_merged(DEPENDENCY)
        if entry is None:
            return None

        app_root = Path(context.application_root)
        return cls(
            application_root=app_root,
            requirement=DependencyRequirement.from_entry(entry),
            package_manager=package_manager,
            layers=context.layers,
            modules_layer=context.layers.layer(DEPENDENCY),
            cache_layer=context.layers.layer(CACHE),
            modules_fingerprint=compute_fingerprint(app_root, name=MODULES_META_NAME, clock=clock),
            cache_fingerprint=compute_fingerprint(app_root, name=CACHE_META_NAME, clock=clock),
            logger=context.logger,
        )

    def contribute(self) -> ContributionReport:
        self._modules_outcome = Outcome.REUSED
        self.modules_layer.contribute(
            self.modules_fingerprint,
            self._contribute_node_modules,
            *self.requirement.flags(),
        )

        cache = NpmCacheContributor(
            application_root=self.application_root,
            layer=self.cache_layer,
            fingerprint=self.cache_fingerprint,
        )
        cache_outcome = Outcome.CONTRIBUTED if cache.contribute() else Outcome.REUSED

        self.layers.write_application_metadata(
            ApplicationMetadata(processes=(Process(type="web", command=self.start_command),)),
        )
        return ContributionReport(
            modules=self._modules_outcome,
            cache=cache_outcome,
            modules_fingerprint=self.modules_fingerprint,
            cache_fingerprint=self.cache_fingerprint,
        )

    def _contribute_node_modules(self, layer: Layer) -> None:
        node_modules = self.application_root / MODULES_DIR

        vendored = has_subdirs(node_modules)
        if vendored:
            self._rebuild()
        else:
            self.logger.info(operation="vendor_tip", layer=DEPENDENCY, message=VENDOR_TIP)
            self._install(layer)

        if file_exists(node_modules):
            copy_directory(node_modules, layer.root / MODULES_DIR)
            remove_tree(node_modules)

        try:
            self.package_manager.warn_unmet_dependencies(self.application_root)
        except NodeLayersError as exc:
            raise DiagnosticError(
                "Failed to check unmet dependencies.",
                context={"app_root": str(self.application_root), "error": str(exc)},
            ) from exc

        layer.override_shared_env("NODE_PATH", str(layer.root / MODULES_DIR))
        layer.append_path_shared_env("PATH", str(layer.root / MODULES_DIR / ".bin"))

    def _rebuild(self) -> None:
        self.logger.info(operation="rebuild", layer=DEPENDENCY, message="Rebuilding node_modules")
        try:
            self.package_manager.rebuild(self.cache_layer.root, self.application_root)
        except NodeLayersError as exc:
            raise PackageManagerError(
                "Unable to rebuild node_modules.",
                context={"app_root": str(self.application_root), "error": str(exc)},
            ) from exc
        self._modules_outcome = Outcome.REBUILT

    def _install(self, layer: Layer) -> None:
        self.logger.info(operation="install", layer=DEPENDENCY, message="Installing node_modules")
        try:
            self.package_manager.install(layer.root, self.cache_layer.root, self.application_root)
        except NodeLayersError as exc:
            raise PackageManagerError(
                "Unable to install node_modules.",
                context={"app_root": str(self.application_root), "error": str(exc)},
            ) from exc
        self._modules_outcome = Outcome.INSTALLED


def contribute_modules(
    context: BuildContext,
    package_manager: PackageManager,
) -> ContributionReport | None:
    """Run the node_modules contribution for one build, if the plan asks for it."""
    contributor = ModulesContributor.from_build(context, package_manager)
    if contributor is None:
        return None
    return contributor.contribute()
