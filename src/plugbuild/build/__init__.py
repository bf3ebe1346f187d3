"""
Build core components for plugbuild.

This module provides the compile and link core including:
- Source processor registry (dispatch of files to compiler plugins)
- Resource slots and the InputFile view plugins work with
- Compilation batches (one per compilation unit)
- Plugin execution across units with per-plugin failure isolation
- Import resolution and the cached link stage
"""

from .compilation_batch import CompilationBatch
from .compiler import BuildError, ILinker, ISourcePlugin, LinkedFile, LinkError
from .diagnostics import Diagnostic, Diagnostics
from .link_cache import LinkCache, compute_cache_key, get_default_link_cache
from .linker import LinkOptions, LinkStage, compute_imports
from .plugin_executor import PluginExecutor
from .resource_slot import InputFile, InvalidPluginArgumentError, ResourceSlot, ResourceSlotError
from .resources import OutputResource, ResourceType, SourceResource
from .source_processor import SourceProcessor, SourceProcessorError, SourceProcessorRegistry

__all__ = [
    'BuildError',
    'CompilationBatch',
    'Diagnostic',
    'Diagnostics',
    'ILinker',
    'ISourcePlugin',
    'InputFile',
    'InvalidPluginArgumentError',
    'LinkCache',
    'LinkError',
    'LinkOptions',
    'LinkStage',
    'LinkedFile',
    'OutputResource',
    'PluginExecutor',
    'ResourceSlot',
    'ResourceSlotError',
    'ResourceType',
    'SourceProcessor',
    'SourceProcessorError',
    'SourceProcessorRegistry',
    'SourceResource',
    'compute_cache_key',
    'compute_imports',
    'get_default_link_cache',
]
