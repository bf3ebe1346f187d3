"""
Source processors and the registry that dispatches files to them.

A source processor is a compiler plugin registered by a package, together
with the file extensions and exact filenames it claims. The registry for a
compilation unit is built by merging the processors of every package the
unit uses, in dependency order, so that later packages override earlier
claims.
"""

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..config.archinfo import matches
from .compiler import BuildError

logger = logging.getLogger(__name__)

# Plain code needs no plugin; it is passed through to the linker as-is.
PASS_THROUGH_EXTENSION = "js"


class SourceProcessorError(BuildError):
    """Raised when a source processor is misconfigured."""
    pass


@dataclass
class SourceProcessor:
    """A compiler plugin and the files it claims.

    Attributes:
        id: Stable identity, unique across all packages of a build
        package_name: Name of the package that registered the plugin
        plugin: ISourcePlugin instance or callable taking a list of input files
        extensions: Claimed extensions, without the leading dot
        filenames: Claimed exact filenames
        archs: Architectures the plugin applies to (None for all)
    """

    id: str
    package_name: str
    plugin: Any
    extensions: Sequence[str] = field(default_factory=list)
    filenames: Sequence[str] = field(default_factory=list)
    archs: Optional[Sequence[str]] = None

    def applies_to(self, arch: str) -> bool:
        """Check whether this processor handles files built for ``arch``."""
        if self.archs is None:
            return True
        return any(matches(arch, program) for program in self.archs)


class SourceProcessorRegistry:
    """
    Maps extensions and exact filenames to source processors.

    Lookups prefer an exact filename claim over an extension claim, so a
    package can opt single files out of extension-wide processing.

    Example usage:
        registry = SourceProcessorRegistry("my-package")
        registry.merge(other_package.source_processors, arch="web.browser")
        processor = registry.resolve(resource)
    """

    def __init__(self, display_name: str, hardcode_js: bool = True):
        """
        Initialize an empty registry.

        Args:
            display_name: Name of the unit the registry is built for (for messages)
            hardcode_js: Treat .js files without a processor as pass-through code
        """
        self.display_name = display_name
        self.hardcode_js = hardcode_js
        self._by_extension: Dict[str, SourceProcessor] = {}
        self._by_filename: Dict[str, SourceProcessor] = {}
        self._processors: Dict[str, SourceProcessor] = {}

    def add(self, processor: SourceProcessor) -> None:
        """
        Register a processor, overriding earlier claims on the same names.

        Args:
            processor: Processor to add

        Raises:
            SourceProcessorError: If the processor claims an empty name
        """
        for extension in processor.extensions:
            if not extension:
                raise SourceProcessorError(
                    f"{processor.package_name}: plugin {processor.id} claims an empty extension"
                )
            self._claim(self._by_extension, extension, processor, f"*.{extension}")

        for filename in processor.filenames:
            if not filename:
                raise SourceProcessorError(
                    f"{processor.package_name}: plugin {processor.id} claims an empty filename"
                )
            self._claim(self._by_filename, filename, processor, filename)

        self._processors[processor.id] = processor

    def merge(self, processors: Iterable[SourceProcessor], arch: Optional[str] = None) -> None:
        """
        Add another package's processors.

        Args:
            processors: Processors to add, in registration order
            arch: Only add processors that apply to this architecture
        """
        for processor in processors:
            if arch is not None and not processor.applies_to(arch):
                logger.debug(f"Skipping plugin {processor.id} from {processor.package_name}: not for {arch}")
                continue
            self.add(processor)

    def get_by_extension(self, extension: str) -> Optional[SourceProcessor]:
        """Get the processor claiming ``extension``, or None."""
        return self._by_extension.get(extension)

    def get_by_filename(self, filename: str) -> Optional[SourceProcessor]:
        """Get the processor claiming the exact ``filename``, or None."""
        return self._by_filename.get(filename)

    def resolve(self, resource) -> Optional[SourceProcessor]:
        """
        Find the processor for a source resource.

        An exact filename claim on the resource's basename wins. Otherwise
        the resource's extension is looked up, unless the resource was
        matched by filename (extension is None).

        Args:
            resource: SourceResource to dispatch

        Returns:
            Processor, or None if nothing claims the resource
        """
        processor = self.get_by_filename(posixpath.basename(resource.path))
        if processor is not None:
            return processor
        if resource.extension is None:
            return None
        return self.get_by_extension(resource.extension)

    def is_pass_through_extension(self, extension: Optional[str]) -> bool:
        """Check whether unclaimed files with ``extension`` pass through as code."""
        return self.hardcode_js and extension == PASS_THROUGH_EXTENSION

    def all_processors(self) -> List[SourceProcessor]:
        """All registered processors, in first registration order."""
        return list(self._processors.values())

    def _claim(
        self,
        table: Dict[str, SourceProcessor],
        key: str,
        processor: SourceProcessor,
        label: str
    ) -> None:
        previous = table.get(key)
        if previous is not None and previous.id != processor.id:
            logger.debug(
                f"{self.display_name}: {label} from {previous.package_name} "
                f"overridden by {processor.package_name}"
            )
        table[key] = processor
