"""
Input and output resource types.

Input resources come from a compilation unit and are either sources that a
compiler plugin transforms, or pass-through resources (already built code,
stylesheets, assets) that go to the output untouched. Output resources are
what plugins and the linker produce.
"""

import hashlib
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union


class ResourceType(Enum):
    """Kinds of input and output resources."""

    SOURCE = "source"
    JS = "js"
    CSS = "css"
    ASSET = "asset"
    HEAD = "head"
    BODY = "body"


@dataclass(frozen=True)
class SourceResource:
    """An input resource of a compilation unit.

    Attributes:
        path: Path relative to the package root
        data: File contents
        hash: Content hash of data
        extension: Extension the file was matched by, None if matched by exact filename
        file_options: Per-file flags from the package control file (e.g. bare)
        type: SOURCE for plugin input, any other type for pass-through resources
        serve_path: Serve path of a pass-through resource
        source_map: Source map of a pass-through code resource
    """

    path: str
    data: bytes
    hash: str
    extension: Optional[str] = None
    file_options: Mapping[str, Any] = field(default_factory=dict)
    type: ResourceType = ResourceType.SOURCE
    serve_path: Optional[str] = None
    source_map: Optional[Dict[str, Any]] = None

    @property
    def is_source(self) -> bool:
        return self.type == ResourceType.SOURCE

    @classmethod
    def from_text(
        cls,
        path: str,
        text: str,
        extension: Optional[str] = None,
        file_options: Optional[Mapping[str, Any]] = None
    ) -> "SourceResource":
        """Create a source resource from text, hashing its UTF-8 bytes."""
        data = text.encode("utf-8")
        return cls(
            path=path,
            data=data,
            hash=sha1(data),
            extension=extension,
            file_options=dict(file_options or {}),
        )


@dataclass(frozen=True)
class OutputResource:
    """A resource produced for the final program.

    Attributes:
        type: JS, CSS, ASSET, HEAD or BODY
        data: Output bytes
        serve_path: URL the resource is served at (None for document fragments)
        path: Output path relative to the package (assets)
        hash: Content hash of data
        source_map: Structured source map, if any
        bare: Code must not be wrapped in a closure
        refreshable: Can be swapped in the client without a full reload
    """

    type: ResourceType
    data: bytes
    serve_path: Optional[str] = None
    path: Optional[str] = None
    hash: Optional[str] = None
    source_map: Optional[Dict[str, Any]] = None
    bare: bool = False
    refreshable: bool = False

    @property
    def byte_size(self) -> int:
        """Bytes this resource occupies in a cache."""
        return len(self.data) + source_map_length(self.source_map)


def sha1(data: bytes) -> str:
    """Hex SHA1 digest of ``data``."""
    return hashlib.sha1(data).hexdigest()


def convert_to_standard_line_endings(text: str) -> str:
    """Convert CRLF and lone CR line endings to LF."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def parse_source_map(source_map: Union[str, Dict[str, Any], None]) -> Optional[Dict[str, Any]]:
    """
    Get a structured source map.

    Args:
        source_map: JSON text, an already parsed map, or None

    Returns:
        Parsed source map or None

    Raises:
        ValueError: If text is not valid JSON
    """
    if source_map is None:
        return None
    if isinstance(source_map, str):
        return json.loads(source_map)
    return source_map


def source_map_length(source_map: Optional[Dict[str, Any]]) -> int:
    """
    Approximate the memory used by a source map.

    Only the fields that grow with the source are counted: mappings and
    the embedded sources.
    """
    if not source_map:
        return 0
    length = len(source_map.get("mappings") or "")
    for content in source_map.get("sourcesContent") or []:
        length += len(content or "")
    return length
