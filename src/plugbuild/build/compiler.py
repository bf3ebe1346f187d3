"""Abstract base classes for build plugins and the linker.

This module defines the interfaces the build core consumes:
- Compiler plugins, which turn source files into output resources
- The link algorithm, which turns a unit's code outputs into served files
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Union


class BuildError(Exception):
    """Base exception for build core errors."""
    pass


class LinkError(BuildError):
    """Raised when the link stage cannot run."""
    pass


class ISourcePlugin(ABC):
    """Interface for compiler plugins.

    A compiler plugin is handed every input file it claims in one call
    per build, across all compilation units of the target. It reports its
    output through the mutators on each input file and returns nothing.
    """

    @abstractmethod
    def process_files_for_target(self, input_files: List[Any]) -> None:
        """Process all input files claimed by this plugin.

        Args:
            input_files: InputFile views, one per claimed resource

        Raises:
            Exception: Any failure is recorded against the plugin's package
        """
        pass


@dataclass
class LinkedFile:
    """One file produced by the link algorithm.

    Attributes:
        serve_path: URL the file is served at
        source: Linked source text
        source_map: Source map as JSON text or parsed dict
    """

    serve_path: str
    source: str
    source_map: Union[str, Dict[str, Any], None] = None


class ILinker(ABC):
    """Interface for the link algorithm.

    Implementations wrap each unit's code in its module scope, inject
    imports of other packages' exports and emit the unit's exports.
    """

    @abstractmethod
    def full_link(self, files: Sequence[Any], options: Any) -> List[LinkedFile]:
        """Link a unit's code outputs.

        Args:
            files: Code output resources, in order
            options: LinkOptions for the unit

        Returns:
            Linked files

        Raises:
            Exception: If the code cannot be linked
        """
        pass


def call_plugin(plugin: Any, input_files: List[Any]) -> None:
    """Invoke a plugin object or plain callable with its input files."""
    if hasattr(plugin, "process_files_for_target"):
        plugin.process_files_for_target(input_files)
    else:
        plugin(input_files)
