"""Package metadata for plugbuild.

This module holds the package and compilation unit model, the catalog
interface the build core queries for upstream packages, and the
dependency traversal rules shared by plugin activation and linking.
"""

from .catalog import IPackageCatalog, InMemoryPackageCatalog
from .dependencies import each_used_unit, get_active_plugin_packages
from .package import (
    CompilationUnit,
    DeclaredExport,
    Dependency,
    PackageError,
    PackageInfo,
    convert_colons,
)

__all__ = [
    "CompilationUnit",
    "DeclaredExport",
    "Dependency",
    "PackageError",
    "PackageInfo",
    "IPackageCatalog",
    "InMemoryPackageCatalog",
    "convert_colons",
    "each_used_unit",
    "get_active_plugin_packages",
]
