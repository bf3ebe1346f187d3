"""
Dependency traversal for compilation units.

Walks a unit's ordered dependency list the way the linker sees it: direct
uses in declaration order, followed by whatever those packages imply.
Weak dependencies are never followed. Unordered and debug-only
dependencies can be skipped on request.
"""

import logging
from collections import deque
from typing import Iterator, List, Optional, Sequence, Tuple

from .catalog import IPackageCatalog
from .package import CompilationUnit, Dependency, PackageError, PackageInfo

logger = logging.getLogger(__name__)

PSEUDO_PACKAGE_PREFIX = "isobuild:"


def each_used_unit(
    uses: Sequence[Dependency],
    arch: str,
    catalog: IPackageCatalog,
    skip_unordered: bool = False,
    skip_debug_only: bool = False
) -> Iterator[CompilationUnit]:
    """
    Yield the units reachable through ``uses`` for ``arch``.

    Each package is visited at most once. Implied dependencies of a visited
    unit are queued after everything already queued, so a direct use always
    comes before what another direct use implies. Packages without a unit
    for ``arch`` are skipped.

    Args:
        uses: Ordered dependency list
        arch: Target architecture
        catalog: Package metadata source
        skip_unordered: Leave out unordered dependencies
        skip_debug_only: Leave out debug-only dependencies

    Yields:
        Compilation units of the used packages

    Raises:
        PackageError: If a used package is not in the catalog
    """
    for package, unit in _walk(uses, arch, catalog, skip_unordered, skip_debug_only):
        if unit is None:
            logger.debug(f"Package {package.name} has no unit for {arch}, skipping")
            continue
        yield unit


def get_active_plugin_packages(
    unit: CompilationUnit,
    catalog: IPackageCatalog
) -> List[PackageInfo]:
    """
    Get the packages whose source processors apply to ``unit``.

    Every package the unit uses, directly or through implies, contributes
    its processors, including unordered and debug-only uses and packages
    that ship only plugins and no unit for the target. The order is the
    traversal order, which is the merge order for the registry.

    Args:
        unit: The unit being compiled
        catalog: Package metadata source

    Returns:
        Ordered list of packages
    """
    return [package for package, _ in _walk(unit.uses, unit.arch, catalog, False, False)]


def _walk(
    uses: Sequence[Dependency],
    arch: str,
    catalog: IPackageCatalog,
    skip_unordered: bool,
    skip_debug_only: bool
) -> Iterator[Tuple[PackageInfo, Optional[CompilationUnit]]]:
    pending = deque(use for use in uses if not _skip(use, skip_unordered, skip_debug_only))

    processed = set()
    while pending:
        use = pending.popleft()
        if use.package in processed:
            continue
        processed.add(use.package)

        package = catalog.get_package(use.package)
        if package is None:
            raise PackageError(f"Package {use.package} is not in the package catalog")

        unit = package.get_unit_at_arch(arch)
        yield package, unit

        if unit is None:
            continue
        for implied in unit.implies:
            if not _skip(implied, skip_unordered, skip_debug_only):
                pending.append(implied)


def _skip(use: Dependency, skip_unordered: bool, skip_debug_only: bool) -> bool:
    if use.package.startswith(PSEUDO_PACKAGE_PREFIX):
        return True
    if use.weak:
        return True
    if skip_unordered and use.unordered:
        return True
    if skip_debug_only and use.debug_only:
        return True
    return False
