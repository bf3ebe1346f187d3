"""Compiler plugin execution.

This module runs the compiler plugins of a build over all of its
compilation units.

Design:
    - Slots of every unit are grouped by source processor, so each plugin
      is called exactly once per build with all the files it claims
    - Each plugin call runs as its own diagnostics job; an exception is
      recorded against the plugin's package and the remaining plugins
      still run
    - Groups never share slots, so plugin calls do not interfere
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..packages.catalog import IPackageCatalog
from ..packages.package import CompilationUnit
from .compilation_batch import CompilationBatch
from .compiler import ILinker, call_plugin
from .diagnostics import Diagnostics
from .link_cache import LinkCache
from .resource_slot import InputFile, ResourceSlot
from .source_processor import SourceProcessor

logger = logging.getLogger(__name__)


class PluginExecutor:
    """Runs compiler plugins for all compilation units of one target.

    Example usage:
        executor = PluginExecutor("web.browser", catalog, linker)
        batches = executor.run_compiler_plugins(units)
        if executor.diagnostics.has_messages():
            print(executor.diagnostics.format())
    """

    def __init__(
        self,
        arch: str,
        catalog: IPackageCatalog,
        linker: ILinker,
        diagnostics: Optional[Diagnostics] = None,
        link_cache: Optional[LinkCache] = None
    ):
        """Initialize the executor.

        Args:
            arch: Target architecture
            catalog: Package metadata source
            linker: Link algorithm handed to each batch
            diagnostics: Collector for recoverable failures (a new one if None)
            link_cache: Link cache handed to each batch
        """
        self.arch = arch
        self.catalog = catalog
        self.linker = linker
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.link_cache = link_cache

    def create_batches(self, units: Sequence[CompilationUnit]) -> List[CompilationBatch]:
        """Build one batch per unit."""
        return [
            CompilationBatch(
                unit,
                self.arch,
                self.catalog,
                self.linker,
                self.diagnostics,
                link_cache=self.link_cache,
            )
            for unit in units
        ]

    def run_compiler_plugins(self, units: Sequence[CompilationUnit]) -> List[CompilationBatch]:
        """Build batches for the units and run all plugins over them.

        Args:
            units: Units of the target

        Returns:
            The batches, or an empty list if matching resources to plugins failed
        """
        # The collector may be shared with other targets; only our messages count.
        messages_before = len(self.diagnostics.messages)
        batches = self.create_batches(units)

        # If we failed to match sources with processors, we're done.
        if len(self.diagnostics.messages) > messages_before:
            return []

        self.run(batches)
        return batches

    def run(self, batches: Sequence[CompilationBatch]) -> None:
        """Call every source processor once with all slots it claims.

        Failures are recorded in self.diagnostics, not raised. Check
        diagnostics before using the batches' resources.

        Args:
            batches: Batches of the target
        """
        for source_processor, resource_slots in self._group_by_processor(batches):
            job_title = (
                f"processing files with {source_processor.package_name} "
                f"(for target {self.arch})"
            )
            with self.diagnostics.job(job_title):
                try:
                    input_files = [InputFile(slot) for slot in resource_slots]
                    call_plugin(source_processor.plugin, input_files)
                except Exception as e:
                    self.diagnostics.exception(
                        e,
                        package_name=source_processor.package_name,
                        arch=self.arch,
                    )

    @staticmethod
    def _group_by_processor(
        batches: Sequence[CompilationBatch]
    ) -> List[Tuple[SourceProcessor, List[ResourceSlot]]]:
        """Group slots by processor id, in the order processors are first seen."""
        groups: Dict[str, Tuple[SourceProcessor, List[ResourceSlot]]] = {}
        for batch in batches:
            for slot in batch.resource_slots:
                source_processor = slot.source_processor
                # Skip non-sources.
                if source_processor is None:
                    continue
                if source_processor.id not in groups:
                    groups[source_processor.id] = (source_processor, [])
                groups[source_processor.id][1].append(slot)

        logger.debug(f"{len(groups)} plugin(s) to run for {len(batches)} unit(s)")
        return list(groups.values())
