"""Shared fixtures for the plugbuild test suite."""

import pytest

from plugbuild.build import ILinker, LinkCache, LinkedFile, SourceProcessor, SourceResource
from plugbuild.build.resources import sha1
from plugbuild.packages import CompilationUnit, InMemoryPackageCatalog, PackageInfo


class RecordingLinker(ILinker):
    """Linker test double: emits each input file unchanged and counts calls."""

    def __init__(self):
        self.calls = 0
        self.last_options = None
        self.last_files = None

    def full_link(self, files, options):
        self.calls += 1
        self.last_options = options
        self.last_files = list(files)
        return [
            LinkedFile(
                serve_path=f.serve_path,
                source=f.data.decode("utf-8"),
                source_map=f.source_map,
            )
            for f in files
        ]


@pytest.fixture
def linker():
    """Linker double with a call counter."""
    return RecordingLinker()


@pytest.fixture
def link_cache():
    """Private link cache so tests never share results."""
    return LinkCache(10 * 1024 * 1024)


@pytest.fixture
def catalog():
    """Empty in-memory package catalog."""
    return InMemoryPackageCatalog()


@pytest.fixture
def make_source():
    """Factory for source resources."""
    def _make(path, text="", extension="", file_options=None):
        # "" derives the extension from the path; None means matched by filename
        if extension == "":
            basename = path.rsplit("/", 1)[-1]
            extension = basename.rsplit(".", 1)[-1] if "." in basename else None
        return SourceResource.from_text(path, text, extension=extension, file_options=file_options)
    return _make


@pytest.fixture
def make_pass_through():
    """Factory for already-built (non-source) resources."""
    def _make(path, data, resource_type, serve_path=None):
        return SourceResource(
            path=path,
            data=data,
            hash=sha1(data),
            type=resource_type,
            serve_path=serve_path,
        )
    return _make


@pytest.fixture
def plugin_package(catalog):
    """Factory registering a package that provides one plugin."""
    def _make(name, plugin, extensions=(), filenames=(), archs=None, processor_id=None):
        processor = SourceProcessor(
            id=processor_id or f"{name}/compile",
            package_name=name,
            plugin=plugin,
            extensions=list(extensions),
            filenames=list(filenames),
            archs=archs,
        )
        package = PackageInfo(
            name=name,
            units=[CompilationUnit(package_name=name, arch="os")],
            source_processors=[processor],
        )
        catalog.add(package)
        return processor
    return _make
