"""
Compilation batch for one compilation unit.

A batch matches every resource of a unit with the source processor that
handles it, holds the resulting resource slots while plugins run, and
afterwards collects the outputs and links the unit's code.
"""

import logging
import posixpath
from typing import Dict, List, Optional

from ..packages.catalog import IPackageCatalog
from ..packages.dependencies import get_active_plugin_packages
from ..packages.package import CompilationUnit
from .compiler import ILinker
from .diagnostics import Diagnostics
from .link_cache import LinkCache
from .linker import LinkOptions, LinkStage, compute_imports
from .resource_slot import ResourceSlot
from .resources import OutputResource
from .source_processor import SourceProcessorRegistry

logger = logging.getLogger(__name__)


class CompilationBatch:
    """
    Resource slots of one compilation unit.

    Resources no active plugin claims are reported to the diagnostics and
    left out; the rest of the unit is still processed.

    Example usage:
        batch = CompilationBatch(unit, "web.browser", catalog, linker, diagnostics)
        # ... plugins run over batch.resource_slots ...
        resources = batch.get_resources()
    """

    def __init__(
        self,
        unit: CompilationUnit,
        arch: str,
        catalog: IPackageCatalog,
        linker: ILinker,
        diagnostics: Diagnostics,
        link_cache: Optional[LinkCache] = None
    ):
        """
        Build the batch.

        Args:
            unit: Unit to compile
            arch: Target architecture of the build
            catalog: Package metadata source
            linker: Link algorithm
            diagnostics: Collector for recoverable failures
            link_cache: Link cache (defaults to the process-wide cache)
        """
        self.unit = unit
        self.arch = arch
        self.catalog = catalog
        self.linker = linker
        self.diagnostics = diagnostics
        self.link_cache = link_cache
        self.source_processors = self._get_source_processor_registry()
        self.resource_slots: List[ResourceSlot] = []

        for resource in unit.resources:
            source_processor = None
            if resource.is_source:
                source_processor = self.source_processors.resolve(resource)
                if source_processor is None and not self.source_processors.is_pass_through_extension(
                    resource.extension
                ):
                    self._report_unclaimed(resource)
                    continue
            self.resource_slots.append(ResourceSlot(resource, source_processor, self))

        logger.debug(
            f"{unit.display_name()}: {len(self.resource_slots)} of {len(unit.resources)} "
            f"resources matched for {arch}"
        )

    def _get_source_processor_registry(self) -> SourceProcessorRegistry:
        """Merge the processors of every package whose plugins are active for the unit."""
        registry = SourceProcessorRegistry(self.unit.display_name(), hardcode_js=True)
        for package in get_active_plugin_packages(self.unit, self.catalog):
            registry.merge(package.source_processors, arch=self.arch)
        return registry

    def _report_unclaimed(self, resource) -> None:
        if resource.extension is None:
            claim = posixpath.basename(resource.path)
        else:
            claim = f"*.{resource.extension}"
        self.diagnostics.error(
            f"no plugin found for {resource.path} in {self.unit.display_name()}; "
            f"a plugin for {claim} was active when it was published but none is now",
            package_name=self.unit.package_name,
            arch=self.arch,
            path=resource.path,
        )

    def compute_imports(self) -> Dict[str, str]:
        """Import map of the unit (see linker.compute_imports)."""
        return compute_imports(self.unit, self.arch, self.catalog)

    def get_link_options(self) -> LinkOptions:
        """Link options the unit's code is linked with."""
        return LinkOptions.for_unit(self.unit, self.compute_imports())

    def get_resources(self) -> List[OutputResource]:
        """
        Get the resources this unit contributes to the program.

        Call once all plugins have run. Non-code outputs come first, in slot
        order, followed by the linked code.

        Returns:
            Output resources

        Raises:
            LinkError: If the unit cannot be linked for the build's arch
        """
        resources: List[OutputResource] = []
        js_resources: List[OutputResource] = []
        for slot in self.resource_slots:
            resources.extend(slot.output_resources)
            js_resources.extend(slot.js_output_resources)

        link_stage = LinkStage(self.linker, cache=self.link_cache)
        resources.extend(link_stage.link(self.unit, self.arch, js_resources, self.compute_imports()))
        return resources
