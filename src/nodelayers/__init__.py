"""Public package entrypoint for the node_modules layer contributor."""

from .build import BuildContext
from .cache_contributor import NpmCacheContributor
from .contributor import ContributionReport, ModulesContributor, Outcome, contribute_modules
from .errors import (
    BuildPlanError,
    DiagnosticError,
    EnvironmentExportError,
    FilesystemError,
    LayerError,
    NodeLayersError,
    PackageManagerError,
)
from .fingerprint import Fingerprint, compute_fingerprint
from .layers import FilesystemLayerStore, InProcessLayerStore
from .models import (
    ApplicationMetadata,
    BuildPlan,
    BuildPlanEntry,
    DependencyRequirement,
    LayerFlag,
    Process,
)
from .observability import StructuredLogger
from .package_manager import NpmPackageManager, PackageManager, PackageManagerConfig

__all__ = [
    "ApplicationMetadata",
    "BuildContext",
    "BuildPlan",
    "BuildPlanEntry",
    "BuildPlanError",
    "ContributionReport",
    "DependencyRequirement",
    "DiagnosticError",
    "EnvironmentExportError",
    "FilesystemError",
    "FilesystemLayerStore",
    "Fingerprint",
    "InProcessLayerStore",
    "LayerError",
    "LayerFlag",
    "ModulesContributor",
    "NodeLayersError",
    "NpmCacheContributor",
    "NpmPackageManager",
    "Outcome",
    "PackageManager",
    "PackageManagerConfig",
    "Process",
    "StructuredLogger",
    "compute_fingerprint",
    "contribute_modules",
]
