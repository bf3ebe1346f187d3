"""Upstream package capability query.

The build core never loads packages itself. It asks a catalog for the
metadata of the packages a unit uses and reads their units, exports and
source processors from the returned PackageInfo.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from .package import PackageError, PackageInfo


class IPackageCatalog(ABC):
    """Interface for package metadata stores.

    Implementations include the on-disk package cache used by the build
    tool and the in-memory catalog below.
    """

    @abstractmethod
    def get_package(self, name: str) -> Optional[PackageInfo]:
        """Look up a package by name.

        Args:
            name: Package name

        Returns:
            PackageInfo, or None if the package is not known
        """
        pass


class InMemoryPackageCatalog(IPackageCatalog):
    """Dict-backed catalog."""

    def __init__(self, packages: Optional[Iterable[PackageInfo]] = None):
        self._packages: Dict[str, PackageInfo] = {}
        for package in packages or []:
            self.add(package)

    def add(self, package: PackageInfo) -> None:
        """
        Register a package.

        Args:
            package: Package metadata

        Raises:
            PackageError: If the package has no name
        """
        if not package.name:
            raise PackageError("Cannot add a package without a name to the catalog")
        self._packages[package.name] = package

    def get_package(self, name: str) -> Optional[PackageInfo]:
        return self._packages.get(name)

    def package_names(self) -> List[str]:
        """Names of all registered packages, sorted."""
        return sorted(self._packages)
