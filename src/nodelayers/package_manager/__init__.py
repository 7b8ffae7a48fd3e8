"""Package-manager adapters."""

from .base import PackageManager, PackageManagerConfig
from .npm import NpmPackageManager

__all__ = ["NpmPackageManager", "PackageManager", "PackageManagerConfig"]
