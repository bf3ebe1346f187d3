"""
Resource slots and the input file view handed to compiler plugins.

Every input resource of a compilation unit gets a ResourceSlot that
collects what is produced from it. Code output is kept apart from the
rest, since it is linked together once all plugins have run.

Plugins never see a slot. They get an InputFile, which exposes the
documented read accessors and output mutators and nothing else.
"""

import logging
import posixpath
import re
from typing import Any, Dict, List, Mapping, Optional, Union

from ..config.archinfo import is_web
from .compiler import BuildError
from .resources import (
    OutputResource,
    ResourceType,
    SourceResource,
    convert_to_standard_line_endings,
    parse_source_map,
    sha1,
)
from .source_processor import PASS_THROUGH_EXTENSION, SourceProcessor

logger = logging.getLogger(__name__)

DOCUMENT_SECTIONS = {"head": ResourceType.HEAD, "body": ResourceType.BODY}

# Reserved top-level folders of the application for static files.
APP_ASSET_FOLDERS = re.compile(r"^(private|public)/")


class ResourceSlotError(BuildError):
    """Raised when a slot is used in a way its resource does not allow."""
    pass


class InvalidPluginArgumentError(BuildError, ValueError):
    """Raised when a plugin passes an invalid argument to an output mutator."""
    pass


class ResourceSlot:
    """
    Processing state for one input resource.

    Construction decides what happens to the resource:
    - a source with a processor waits for the plugin to add outputs
    - a .js source without a processor is passed through as code
    - a non-source resource goes straight to the outputs
    """

    def __init__(
        self,
        input_resource: SourceResource,
        source_processor: Optional[SourceProcessor],
        batch: Any
    ):
        """
        Initialize a slot.

        Args:
            input_resource: The resource this slot processes
            source_processor: Processor assigned to the resource, if any
            batch: CompilationBatch that owns the slot

        Raises:
            ResourceSlotError: If a processor is assigned to a non-source
                resource, or a source other than plain code has no processor
        """
        self.input_resource = input_resource
        self.source_processor = source_processor
        self.batch = batch
        # Everything but code.
        self.output_resources: List[OutputResource] = []
        # Code, which gets linked together at the end.
        self.js_output_resources: List[OutputResource] = []

        if input_resource.is_source:
            if source_processor is not None:
                return
            if input_resource.extension != PASS_THROUGH_EXTENSION:
                raise ResourceSlotError(
                    f"No source processor for {input_resource.path} in {self.unit.display_name()}"
                )
            logger.debug(f"No plugin for {input_resource.path}, passing it through as plain code")
            options = input_resource.file_options or {}
            self.add_code(
                path=input_resource.path,
                data=input_resource.data.decode("utf-8"),
                bare=bool(options.get("bare") or options.get("raw")),
            )
            return

        if source_processor is not None:
            raise ResourceSlotError(
                f"Source processor {source_processor.id} assigned to non-source resource "
                f"{input_resource.path} ({input_resource.type.value})"
            )
        self._add_pass_through(input_resource)

    @property
    def unit(self):
        """Compilation unit the resource belongs to."""
        return self.batch.unit

    def add_code(
        self,
        path: str,
        data: str,
        source_map: Optional[Dict[str, Any]] = None,
        bare: bool = False
    ) -> None:
        """
        Add code to be linked.

        Args:
            path: Output path relative to the package
            data: Code text
            source_map: Parsed source map
            bare: Do not wrap the code in a closure

        Raises:
            ResourceSlotError: If the slot has no processor and is not plain code
            InvalidPluginArgumentError: If data is not text
        """
        if self.source_processor is None and not (
            self.input_resource.is_source
            and self.input_resource.extension == PASS_THROUGH_EXTENSION
        ):
            raise ResourceSlotError(f"add_code on non-source resource {self.input_resource.path}")
        _require_text(data, "add_code")

        encoded = convert_to_standard_line_endings(data).encode("utf-8")
        self.js_output_resources.append(OutputResource(
            type=ResourceType.JS,
            data=encoded,
            serve_path=self.unit.serve_path(path),
            hash=sha1(encoded),
            source_map=source_map,
            bare=bool(bare),
        ))

    def add_stylesheet(
        self,
        path: str,
        data: str,
        source_map: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Add a stylesheet.

        Args:
            path: Requested output path relative to the package
            data: Stylesheet text
            source_map: Parsed source map

        Raises:
            ResourceSlotError: If the slot has no processor
            InvalidPluginArgumentError: If data is not text
        """
        self._require_processor("add_stylesheet")
        _require_text(data, "add_stylesheet")

        encoded = convert_to_standard_line_endings(data).encode("utf-8")
        self.output_resources.append(OutputResource(
            type=ResourceType.CSS,
            data=encoded,
            serve_path=self.unit.serve_path(path),
            hash=sha1(encoded),
            source_map=source_map,
            refreshable=True,
        ))

    def add_asset(
        self,
        path: str,
        data: Union[bytes, bytearray, str],
        hash: Optional[str] = None
    ) -> None:
        """
        Add a file served as-is.

        Assets of a package are served under /packages/<name>/. The
        application's assets are served from the root, without the reserved
        public/ or private/ folder prefix.

        Args:
            path: Output path relative to the package
            data: File contents (bytes, or text encoded as UTF-8)
            hash: Content hash to use instead of hashing data

        Raises:
            ResourceSlotError: If the slot has no processor
            InvalidPluginArgumentError: If data is neither bytes nor text, or the
                path leaves the package
        """
        self._require_processor("add_asset")

        if isinstance(data, str):
            data = data.encode("utf-8")
        elif isinstance(data, (bytes, bytearray)):
            data = bytes(data)
        else:
            raise InvalidPluginArgumentError(
                f"'data' option to add_asset must be bytes or str, got {type(data).__name__}"
            )

        output_path = posixpath.normpath(path.replace("\\", "/")).lstrip("/")
        if output_path in ("", ".", "..") or output_path.startswith("../"):
            raise InvalidPluginArgumentError(
                f"Asset path {path!r} does not name a file inside {self.unit.display_name()}"
            )
        if self.unit.is_app:
            output_path = APP_ASSET_FOLDERS.sub("", output_path)

        self.output_resources.append(OutputResource(
            type=ResourceType.ASSET,
            data=data,
            path=output_path,
            serve_path=self.unit.serve_path(output_path),
            hash=hash if hash else sha1(data),
        ))

    def add_document_fragment(self, section: str, data: str) -> None:
        """
        Append markup to the head or body of the served document.

        Args:
            section: "head" or "body"
            data: Markup text

        Raises:
            ResourceSlotError: If the slot has no processor
            InvalidPluginArgumentError: If the unit is not built for the web,
                the section is unknown, or data is not text
        """
        self._require_processor("add_document_fragment")

        if not is_web(self.unit.arch):
            raise InvalidPluginArgumentError(
                f"Document sections can only be emitted to web targets, not {self.unit.arch}"
            )
        if not isinstance(section, str) or section not in DOCUMENT_SECTIONS:
            raise InvalidPluginArgumentError(f"'section' must be 'head' or 'body', got {section!r}")
        _require_text(data, "add_document_fragment")

        self.output_resources.append(OutputResource(
            type=DOCUMENT_SECTIONS[section],
            data=convert_to_standard_line_endings(data).encode("utf-8"),
        ))

    def _require_processor(self, operation: str) -> None:
        if self.source_processor is None:
            raise ResourceSlotError(f"{operation} on non-source resource {self.input_resource.path}")

    def _add_pass_through(self, resource: SourceResource) -> None:
        options = resource.file_options or {}
        output = OutputResource(
            type=resource.type,
            data=resource.data,
            serve_path=resource.serve_path or self.unit.serve_path(resource.path),
            path=resource.path,
            hash=resource.hash,
            source_map=resource.source_map,
            bare=bool(options.get("bare")),
        )
        if resource.type == ResourceType.JS:
            self.js_output_resources.append(output)
        else:
            self.output_resources.append(output)


def _require_text(data: Any, operation: str) -> None:
    if not isinstance(data, str):
        raise InvalidPluginArgumentError(
            f"'data' option to {operation} must be a string, got {type(data).__name__}"
        )


class InputFile:
    """
    The view of one input resource a compiler plugin works with.

    Plugins read the file through the get_* accessors and report results
    through the add_* mutators. Outputs added through one input file keep
    their call order.
    """

    def __init__(self, resource_slot: ResourceSlot):
        self._resource_slot = resource_slot

    def get_contents_as_bytes(self) -> bytes:
        """Raw contents of the file."""
        return self._resource_slot.input_resource.data

    def get_contents_as_string(self, encoding: str = "utf-8") -> str:
        """Contents of the file decoded as text."""
        return self.get_contents_as_bytes().decode(encoding)

    def get_package_name(self) -> Optional[str]:
        """Name of the package the file belongs to, None for the app."""
        return self._resource_slot.unit.package_name

    def get_path_in_package(self) -> str:
        """Path of the file relative to the package root."""
        return self._resource_slot.input_resource.path

    def get_basename(self) -> str:
        """Filename without directories."""
        return posixpath.basename(self.get_path_in_package())

    def get_file_options(self) -> Mapping[str, Any]:
        """Options the file was added with (e.g. bare)."""
        return self._resource_slot.input_resource.file_options or {}

    def get_arch(self) -> str:
        """Architecture being built."""
        return self._resource_slot.batch.arch

    def get_source_hash(self) -> str:
        """Content hash of the file."""
        return self._resource_slot.input_resource.hash

    def get_extension(self) -> Optional[str]:
        """Extension the file was matched by; None if it was matched by filename."""
        return self._resource_slot.input_resource.extension

    def get_declared_exports(self) -> List[Any]:
        """Symbols exported by the file's unit."""
        return list(self._resource_slot.unit.declared_exports)

    def get_display_path(self) -> str:
        """Path for error messages and source maps."""
        return self._resource_slot.unit.serve_path(self.get_path_in_package())

    def add_code(
        self,
        path: str,
        data: str,
        source_map: Union[str, Dict[str, Any], None] = None,
        bare: bool = False
    ) -> None:
        """
        Add code. It only sees the exports of packages the unit uses.

        Args:
            path: Output path relative to the package
            data: Code text
            source_map: Source map as JSON text or parsed dict
            bare: Do not wrap the code in a closure
        """
        self._resource_slot.add_code(
            path=path,
            data=data,
            source_map=_parse_plugin_source_map(source_map),
            bare=bare,
        )

    def add_stylesheet(
        self,
        path: str,
        data: str,
        source_map: Union[str, Dict[str, Any], None] = None
    ) -> None:
        """
        Add a stylesheet.

        Args:
            path: Requested output path, may not be honored on conflicts
            data: Stylesheet text
            source_map: Source map as JSON text or parsed dict
        """
        self._resource_slot.add_stylesheet(
            path=path,
            data=data,
            source_map=_parse_plugin_source_map(source_map),
        )

    def add_asset(
        self,
        path: str,
        data: Union[bytes, bytearray, str],
        hash: Optional[str] = None
    ) -> None:
        """Add a file to serve as-is."""
        self._resource_slot.add_asset(path=path, data=data, hash=hash)

    def add_document_fragment(self, section: str, data: str) -> None:
        """Web targets only. Append markup to the "head" or "body" section."""
        self._resource_slot.add_document_fragment(section=section, data=data)

    def __repr__(self) -> str:
        return f"InputFile({self.get_path_in_package()!r}, package={self.get_package_name()!r})"


def _parse_plugin_source_map(source_map: Union[str, Dict[str, Any], None]) -> Optional[Dict[str, Any]]:
    try:
        return parse_source_map(source_map)
    except ValueError as e:
        raise InvalidPluginArgumentError(f"Source map is not valid JSON: {e}")
