"""Package and compilation unit metadata.

A package is published once and contains one compilation unit per
architecture it was built for. Each unit lists its resources, the symbols
it exports and the packages it uses. These types are the read-only view the
build core needs of the package store.
"""

import posixpath
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from ..config.archinfo import most_specific_match


class PackageError(Exception):
    """Base exception for package metadata errors."""

    pass


def convert_colons(path: str) -> str:
    """Replace colons in a serve path, they are not allowed in URLs on every platform."""
    return path.replace(":", "_")


@dataclass(frozen=True)
class DeclaredExport:
    """A symbol a unit makes available to units that use it.

    Attributes:
        name: Symbol name
        test_only: Only visible to test units
    """

    name: str
    test_only: bool = False


@dataclass(frozen=True)
class Dependency:
    """One entry of a unit's ordered dependency list.

    Attributes:
        package: Name of the used package
        unordered: The used package may load after this one
        weak: Only used if something else pulls the package into the target
        debug_only: Only included in debug builds
        constraint: Version constraint as written (informational)
    """

    package: str
    unordered: bool = False
    weak: bool = False
    debug_only: bool = False
    constraint: Optional[str] = None


@dataclass
class CompilationUnit:
    """One package (or the application) built for one architecture.

    Attributes:
        package_name: Package name, None for the application
        arch: Architecture the unit was built for
        resources: Input resources, in declaration order
        declared_exports: Exported symbols
        uses: Dependencies, in declaration order
        implies: Dependencies re-exported to units that use this one
        kind: Unit kind ("main" for the package body)
        is_test: Unit is a test package
    """

    package_name: Optional[str]
    arch: str
    resources: Sequence[Any] = field(default_factory=list)
    declared_exports: Sequence[DeclaredExport] = field(default_factory=list)
    uses: Sequence[Dependency] = field(default_factory=list)
    implies: Sequence[Dependency] = field(default_factory=list)
    kind: str = "main"
    is_test: bool = False

    @property
    def is_app(self) -> bool:
        """The application has no package name."""
        return not self.package_name

    def display_name(self) -> str:
        """Human readable name for messages."""
        return self.package_name if self.package_name else "the app"

    def serve_root(self) -> str:
        """URL prefix everything this unit serves lives under."""
        if self.package_name:
            return posixpath.join("/packages/", self.package_name)
        return "/"

    def serve_path(self, path: str) -> str:
        """
        Get the URL a file of this unit is served at.

        Args:
            path: Path relative to the package root

        Returns:
            Absolute serve path with colons converted
        """
        return convert_colons(posixpath.join(self.serve_root(), path.lstrip("/")))

    def combined_serve_path(self) -> Optional[str]:
        """
        Get the serve path of the unit's linked code.

        The application links into the global namespace and has none. A
        package's main unit is served as ``<name>.js``; other kinds as
        ``<name>:<kind>.js`` with colons converted.
        """
        if self.is_app:
            return None
        suffix = "" if self.kind == "main" else ":" + self.kind
        return "/packages/" + convert_colons(self.package_name + suffix + ".js")

    def export_names(self) -> List[str]:
        """Names of all declared exports."""
        return [export.name for export in self.declared_exports]


@dataclass
class PackageInfo:
    """A published package: its units and the source processors it provides.

    Attributes:
        name: Package name
        units: One compilation unit per architecture
        source_processors: Compiler plugins registered by this package
    """

    name: str
    units: List[CompilationUnit] = field(default_factory=list)
    source_processors: List[Any] = field(default_factory=list)

    def get_unit_at_arch(self, arch: str) -> Optional[CompilationUnit]:
        """
        Pick the unit that runs on ``arch``.

        Args:
            arch: Target architecture

        Returns:
            The most specific matching unit, or None if none match
        """
        best_arch = most_specific_match(arch, [unit.arch for unit in self.units])
        if best_arch is None:
            return None
        for unit in self.units:
            if unit.arch == best_arch:
                return unit
        return None
