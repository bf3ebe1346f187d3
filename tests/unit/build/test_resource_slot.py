"""
Unit tests for ResourceSlot and the InputFile view.

Tests the construction rules for slots and every output mutator a plugin
can call.
"""

import json
from unittest.mock import Mock

import pytest

from plugbuild.build import (
    InputFile,
    InvalidPluginArgumentError,
    ResourceSlot,
    ResourceSlotError,
    ResourceType,
    SourceProcessor,
    SourceResource,
)
from plugbuild.build.resources import sha1
from plugbuild.packages import CompilationUnit, DeclaredExport


@pytest.fixture
def processor():
    return SourceProcessor(id="widgets/compile", package_name="widget-compiler", plugin=Mock())


def _batch(package_name="widgets", arch="web.browser", exports=()):
    unit = CompilationUnit(
        package_name=package_name,
        arch=arch,
        declared_exports=list(exports),
    )
    return Mock(unit=unit, arch=arch)


def _source(path, text="", extension=None, file_options=None):
    if extension is None:
        extension = path.rsplit(".", 1)[-1]
    return SourceResource.from_text(path, text, extension=extension, file_options=file_options)


class TestSlotConstruction:
    """Test what happens to a resource when its slot is created."""

    def test_source_with_processor_waits(self, processor):
        slot = ResourceSlot(_source("a.widget", "w"), processor, _batch())
        assert slot.output_resources == []
        assert slot.js_output_resources == []

    def test_plain_code_passes_through(self):
        slot = ResourceSlot(_source("lib/a.js", "var a = 1;\r\nvar b = 2;"), None, _batch())

        assert len(slot.js_output_resources) == 1
        code = slot.js_output_resources[0]
        assert code.type == ResourceType.JS
        assert code.data == b"var a = 1;\nvar b = 2;"
        assert code.serve_path == "/packages/widgets/lib/a.js"
        assert code.hash == sha1(code.data)
        assert code.bare is False

    def test_plain_code_bare_flag(self):
        slot = ResourceSlot(_source("a.js", "x", file_options={"bare": True}), None, _batch())
        assert slot.js_output_resources[0].bare is True

    def test_plain_code_legacy_raw_flag(self):
        slot = ResourceSlot(_source("a.js", "x", file_options={"raw": True}), None, _batch())
        assert slot.js_output_resources[0].bare is True

    def test_unclaimed_source_rejected(self):
        with pytest.raises(ResourceSlotError):
            ResourceSlot(_source("a.widget"), None, _batch())

    def test_processor_for_non_source_rejected(self, processor):
        resource = SourceResource(path="a.css", data=b"", hash=sha1(b""), type=ResourceType.CSS)
        with pytest.raises(ResourceSlotError):
            ResourceSlot(resource, processor, _batch())

    def test_non_source_code_goes_to_code_outputs(self):
        resource = SourceResource(
            path="built.js",
            data=b"built()",
            hash=sha1(b"built()"),
            type=ResourceType.JS,
            serve_path="/packages/widgets/built.js",
        )
        slot = ResourceSlot(resource, None, _batch())

        assert [r.data for r in slot.js_output_resources] == [b"built()"]
        assert slot.output_resources == []

    def test_non_source_asset_goes_to_other_outputs(self):
        resource = SourceResource(path="logo.png", data=b"\x89PNG", hash="h", type=ResourceType.ASSET)
        slot = ResourceSlot(resource, None, _batch())

        assert len(slot.output_resources) == 1
        assert slot.output_resources[0].serve_path == "/packages/widgets/logo.png"
        assert slot.js_output_resources == []


class TestAddCode:
    """Test code output."""

    def test_add_code(self, processor):
        slot = ResourceSlot(_source("a.widget"), processor, _batch())
        slot.add_code(path="a.js", data="one()\r\ntwo()", source_map={"mappings": "AAAA"}, bare=True)

        code = slot.js_output_resources[0]
        assert code.data == b"one()\ntwo()"
        assert code.source_map == {"mappings": "AAAA"}
        assert code.bare is True

    def test_outputs_keep_call_order(self, processor):
        slot = ResourceSlot(_source("a.widget"), processor, _batch())
        slot.add_code(path="1.js", data="1")
        slot.add_code(path="2.js", data="2")
        slot.add_code(path="3.js", data="3")

        assert [r.data for r in slot.js_output_resources] == [b"1", b"2", b"3"]

    def test_add_code_on_non_source_rejected(self):
        resource = SourceResource(path="a.png", data=b"", hash="h", type=ResourceType.ASSET)
        slot = ResourceSlot(resource, None, _batch())
        with pytest.raises(ResourceSlotError):
            slot.add_code(path="a.js", data="x")

    def test_add_code_requires_text(self, processor):
        slot = ResourceSlot(_source("a.widget"), processor, _batch())
        with pytest.raises(InvalidPluginArgumentError):
            slot.add_code(path="a.js", data=b"bytes")


class TestAddStylesheet:
    """Test stylesheet output."""

    def test_add_stylesheet(self, processor):
        slot = ResourceSlot(_source("a.less"), processor, _batch())
        slot.add_stylesheet(path="a.css", data="a {}\r\n")

        css = slot.output_resources[0]
        assert css.type == ResourceType.CSS
        assert css.refreshable is True
        assert css.data == b"a {}\n"
        assert css.serve_path == "/packages/widgets/a.css"

    def test_add_stylesheet_without_processor(self):
        slot = ResourceSlot(_source("a.js"), None, _batch())
        with pytest.raises(ResourceSlotError):
            slot.add_stylesheet(path="a.css", data="a {}")


class TestAddAsset:
    """Test asset output."""

    @pytest.mark.parametrize("data", [b"bytes", "text", None, 42])
    def test_add_asset_without_processor_always_fails(self, data):
        slot = ResourceSlot(_source("a.js"), None, _batch())
        with pytest.raises(ResourceSlotError):
            slot.add_asset(path="x", data=data)

    def test_package_asset(self, processor):
        slot = ResourceSlot(_source("a.widget"), processor, _batch())
        slot.add_asset(path="images/logo.png", data=b"\x89PNG")

        asset = slot.output_resources[0]
        assert asset.type == ResourceType.ASSET
        assert asset.path == "images/logo.png"
        assert asset.serve_path == "/packages/widgets/images/logo.png"
        assert asset.hash == sha1(b"\x89PNG")

    def test_package_keeps_public_folder(self, processor):
        slot = ResourceSlot(_source("a.widget"), processor, _batch())
        slot.add_asset(path="public/logo.png", data=b"x")
        assert slot.output_resources[0].serve_path == "/packages/widgets/public/logo.png"

    @pytest.mark.parametrize("folder", ["public", "private"])
    def test_app_strips_reserved_folder(self, processor, folder):
        slot = ResourceSlot(_source("a.widget"), processor, _batch(package_name=None))
        slot.add_asset(path=f"{folder}/img/logo.png", data=b"x")

        asset = slot.output_resources[0]
        assert asset.path == "img/logo.png"
        assert asset.serve_path == "/img/logo.png"

    def test_text_data_and_explicit_hash(self, processor):
        slot = ResourceSlot(_source("a.widget"), processor, _batch())
        slot.add_asset(path="notes.txt", data="héllo", hash="given")

        asset = slot.output_resources[0]
        assert asset.data == "héllo".encode("utf-8")
        assert asset.hash == "given"

    def test_windows_separators(self, processor):
        slot = ResourceSlot(_source("a.widget"), processor, _batch())
        slot.add_asset(path="images\\logo.png", data=b"x")
        assert slot.output_resources[0].path == "images/logo.png"

    def test_invalid_data(self, processor):
        slot = ResourceSlot(_source("a.widget"), processor, _batch())
        with pytest.raises(InvalidPluginArgumentError):
            slot.add_asset(path="a.bin", data=123)
        assert slot.output_resources == []

    @pytest.mark.parametrize("path", ["../../evil.js", "..", "images/../../x.png", "..\\secret.txt"])
    def test_path_outside_package_rejected(self, processor, path):
        slot = ResourceSlot(_source("a.widget"), processor, _batch())
        with pytest.raises(InvalidPluginArgumentError, match="inside widgets"):
            slot.add_asset(path=path, data=b"x")
        assert slot.output_resources == []

    @pytest.mark.parametrize("path", [".", "", "images/.."])
    def test_path_naming_no_file_rejected(self, processor, path):
        slot = ResourceSlot(_source("a.widget"), processor, _batch(package_name=None))
        with pytest.raises(InvalidPluginArgumentError, match="inside the app"):
            slot.add_asset(path=path, data=b"x")

    def test_dot_segments_inside_package_allowed(self, processor):
        slot = ResourceSlot(_source("a.widget"), processor, _batch())
        slot.add_asset(path="images/../logo.png", data=b"x")
        assert slot.output_resources[0].serve_path == "/packages/widgets/logo.png"


class TestAddDocumentFragment:
    """Test head/body markup output."""

    def test_head_and_body(self, processor):
        slot = ResourceSlot(_source("page.html"), processor, _batch())
        slot.add_document_fragment(section="head", data="<title>x</title>")
        slot.add_document_fragment(section="body", data="<div></div>")

        assert [r.type for r in slot.output_resources] == [ResourceType.HEAD, ResourceType.BODY]
        assert slot.output_resources[0].data == b"<title>x</title>"

    def test_unknown_section(self, processor):
        slot = ResourceSlot(_source("page.html"), processor, _batch())
        with pytest.raises(InvalidPluginArgumentError, match="section"):
            slot.add_document_fragment(section="foot", data="<p></p>")
        assert slot.output_resources == []

    @pytest.mark.parametrize("section", [["head"], {"body": 1}, None])
    def test_section_must_be_a_name(self, processor, section):
        slot = ResourceSlot(_source("page.html"), processor, _batch())
        with pytest.raises(InvalidPluginArgumentError, match="section"):
            slot.add_document_fragment(section=section, data="<p></p>")

    def test_non_web_arch(self, processor):
        slot = ResourceSlot(_source("page.html"), processor, _batch(arch="os.linux.x86_64"))
        with pytest.raises(InvalidPluginArgumentError, match="web"):
            slot.add_document_fragment(section="head", data="<title></title>")

    def test_data_must_be_text(self, processor):
        slot = ResourceSlot(_source("page.html"), processor, _batch())
        with pytest.raises(InvalidPluginArgumentError):
            slot.add_document_fragment(section="body", data=b"<p></p>")


class TestInputFile:
    """Test the plugin-facing view."""

    def test_accessors(self, processor):
        resource = _source("lib/thing.widget", "content", file_options={"bare": True})
        batch = _batch(exports=[DeclaredExport("Thing")])
        input_file = InputFile(ResourceSlot(resource, processor, batch))

        assert input_file.get_contents_as_bytes() == b"content"
        assert input_file.get_contents_as_string() == "content"
        assert input_file.get_package_name() == "widgets"
        assert input_file.get_path_in_package() == "lib/thing.widget"
        assert input_file.get_basename() == "thing.widget"
        assert input_file.get_file_options() == {"bare": True}
        assert input_file.get_arch() == "web.browser"
        assert input_file.get_source_hash() == resource.hash
        assert input_file.get_extension() == "widget"
        assert input_file.get_declared_exports() == [DeclaredExport("Thing")]
        assert input_file.get_display_path() == "/packages/widgets/lib/thing.widget"

    def test_view_hides_slot(self, processor):
        input_file = InputFile(ResourceSlot(_source("a.widget"), processor, _batch()))
        assert not hasattr(input_file, "js_output_resources")
        assert not hasattr(input_file, "input_resource")

    def test_source_map_text_is_parsed(self, processor):
        slot = ResourceSlot(_source("a.widget"), processor, _batch())
        input_file = InputFile(slot)
        source_map = {"version": 3, "mappings": "AAAA", "sources": ["a.widget"]}

        input_file.add_code(path="a.js", data="x", source_map=json.dumps(source_map))
        input_file.add_stylesheet(path="a.css", data="y", source_map=source_map)

        assert slot.js_output_resources[0].source_map == source_map
        assert slot.output_resources[0].source_map == source_map

    def test_invalid_source_map_text(self, processor):
        input_file = InputFile(ResourceSlot(_source("a.widget"), processor, _batch()))
        with pytest.raises(InvalidPluginArgumentError, match="JSON"):
            input_file.add_code(path="a.js", data="x", source_map="{not json")

    def test_mutators_delegate(self, processor):
        slot = ResourceSlot(_source("a.widget"), processor, _batch())
        input_file = InputFile(slot)

        input_file.add_asset(path="a.bin", data=b"\x00")
        input_file.add_document_fragment(section="body", data="<p></p>")

        assert [r.type for r in slot.output_resources] == [ResourceType.ASSET, ResourceType.BODY]
