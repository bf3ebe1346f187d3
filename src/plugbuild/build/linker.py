"""
Link stage: import resolution and cached linking.

This module handles:
- Merging the exports of a unit's dependencies into its import map
- Deriving the link options for a unit
- Running the link algorithm through the link cache
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from ..config.archinfo import is_web, matches
from ..config.build_config import linker_cache_debug_from_env
from ..packages.catalog import IPackageCatalog
from ..packages.dependencies import each_used_unit
from ..packages.package import CompilationUnit
from .compiler import ILinker, LinkError
from .link_cache import LinkCache, LinkResult, compute_cache_key, get_default_link_cache
from .resources import OutputResource, ResourceType, parse_source_map, sha1

logger = logging.getLogger(__name__)

GLOBAL_IMPORTS_SERVE_PATH = "/packages/global-imports.js"


@dataclass(frozen=True)
class LinkOptions:
    """Options for linking one unit.

    Attributes:
        use_global_namespace: Code shares one global namespace (application only)
        combined_serve_path: Serve path of the linked package file (None for the app)
        name: Package name (None for the app)
        declared_exports: Names the unit exports
        imports: Symbol name -> name of the package supplying it
        import_stub_serve_path: Serve path of the application's import stub
        include_source_map_instructions: Emit source map comments (web targets)
    """

    use_global_namespace: bool
    combined_serve_path: Optional[str]
    name: Optional[str]
    declared_exports: Tuple[str, ...] = ()
    imports: Mapping[str, str] = field(default_factory=dict)
    import_stub_serve_path: Optional[str] = None
    include_source_map_instructions: bool = False

    @classmethod
    def for_unit(
        cls,
        unit: CompilationUnit,
        imports: Mapping[str, str]
    ) -> "LinkOptions":
        """
        Derive link options for a unit.

        Args:
            unit: The unit being linked
            imports: Import map from compute_imports

        Returns:
            LinkOptions for the unit
        """
        is_app = unit.is_app
        return cls(
            use_global_namespace=is_app,
            combined_serve_path=unit.combined_serve_path(),
            name=unit.package_name or None,
            declared_exports=tuple(unit.export_names()),
            imports=dict(imports),
            import_stub_serve_path=GLOBAL_IMPORTS_SERVE_PATH if is_app else None,
            include_source_map_instructions=is_web(unit.arch),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return {
            "useGlobalNamespace": self.use_global_namespace,
            "combinedServePath": self.combined_serve_path,
            "name": self.name,
            "declaredExports": list(self.declared_exports),
            "imports": dict(self.imports),
            "importStubServePath": self.import_stub_serve_path,
            "includeSourceMapInstructions": self.include_source_map_instructions,
        }


def compute_imports(
    unit: CompilationUnit,
    arch: str,
    catalog: IPackageCatalog
) -> Dict[str, str]:
    """
    Merge the exports of the packages a unit uses into its import map.

    Later dependencies win when two export the same symbol. Unordered
    dependencies are left out because they may not be loaded yet, and weak
    and debug-only dependencies because whether they are present depends on
    unrelated parts of the target. Test-only exports are visible to test
    units only.

    Args:
        unit: The importing unit
        arch: Target architecture
        catalog: Package metadata source

    Returns:
        Symbol name -> supplying package name
    """
    imports: Dict[str, str] = {}
    used_units = each_used_unit(
        unit.uses,
        arch,
        catalog,
        skip_unordered=True,
        skip_debug_only=True,
    )
    for used_unit in used_units:
        for symbol in used_unit.declared_exports:
            if symbol.test_only and not unit.is_test:
                continue
            imports[symbol.name] = used_unit.package_name
    return imports


class LinkStage:
    """
    Links a unit's code outputs, reusing earlier results when possible.

    Example usage:
        stage = LinkStage(linker, cache=LinkCache(50 * 1024 * 1024))
        linked = stage.link(unit, "web.browser", js_resources, imports)
    """

    def __init__(
        self,
        linker: ILinker,
        cache: Optional[LinkCache] = None,
        debug: Optional[bool] = None
    ):
        """
        Initialize the link stage.

        Args:
            linker: Link algorithm
            cache: Link cache (defaults to the process-wide cache)
            debug: Log cache hits and misses at INFO (defaults to the environment setting)
        """
        self.linker = linker
        self.cache = cache if cache is not None else get_default_link_cache()
        if debug is None:
            debug = linker_cache_debug_from_env()
        self.debug = debug

    def link(
        self,
        unit: CompilationUnit,
        arch: str,
        js_resources: Sequence[OutputResource],
        imports: Mapping[str, str]
    ) -> LinkResult:
        """
        Link code resources of a unit.

        Args:
            unit: The unit being linked
            arch: Target architecture of the build
            js_resources: Code outputs of the unit, in order
            imports: Import map from compute_imports

        Returns:
            Linked code resources; shared with the cache, do not modify

        Raises:
            LinkError: If the unit was not built for ``arch``
        """
        if not matches(arch, unit.arch):
            raise LinkError(
                f"Unit of {unit.display_name()} for arch '{unit.arch}' does not support '{arch}'"
            )

        options = LinkOptions.for_unit(unit, imports)
        cache_key = compute_cache_key(options.to_dict(), js_resources)

        cached = self.cache.get(cache_key)
        if cached is not None:
            self._report("LINKER CACHE HIT", options, arch)
            return cached
        self._report("LINKER CACHE MISS", options, arch)

        linked_files = self.linker.full_link(list(js_resources), options)

        result = []
        for linked in linked_files:
            data = linked.source.encode("utf-8")
            result.append(OutputResource(
                type=ResourceType.JS,
                data=data,
                serve_path=linked.serve_path,
                hash=sha1(data),
                source_map=parse_source_map(linked.source_map),
            ))

        return self.cache.set(cache_key, result)

    def _report(self, event: str, options: LinkOptions, arch: str) -> None:
        message = f"{event}: {options.name} {arch}"
        if self.debug:
            logger.info(message)
        else:
            logger.debug(message)
