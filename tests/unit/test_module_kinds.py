"""
Tests for the module kind registry and the built-in kinds.
"""

import json
from pathlib import Path

import pytest

from packlet.analysis.module_system import (
    JsonKind,
    KindRegistry,
    Module,
    ModuleKindHandler,
    ScriptKind,
    StylesheetKind,
)
from packlet.frontend.parser import ParseError, ParsedScript
from packlet.shared.errors import ModuleIOError, UnsupportedKindError


@pytest.fixture
def registry(parser):
    return KindRegistry.with_default_kinds(parser)


class TextKind(ModuleKindHandler):
    """Plain text files exported as a string."""

    name = "text"

    def load(self, path, raw):
        return raw

    def transform(self, module):
        return f"exports.default = {json.dumps(module.parsed)};"


class TestDispatch:
    @pytest.mark.parametrize("name, kind", [
        ("a.js", "script"),
        ("a.mjs", "script"),
        ("A.JS", "script"),
        ("theme.css", "stylesheet"),
        ("data.json", "json"),
    ])
    def test_default_kinds(self, registry, name, kind):
        assert registry.handler_for(Path(name)).name == kind

    def test_unknown_extension(self, registry, project):
        root = project({"logo.svg": "<svg/>"})
        with pytest.raises(UnsupportedKindError) as exc:
            registry.load_module(root / "logo.svg")
        assert exc.value.extension == ".svg"
        assert "'.svg'" in exc.value.message

    def test_missing_extension(self, registry):
        with pytest.raises(UnsupportedKindError) as exc:
            registry.handler_for(Path("/app/Makefile"))
        assert exc.value.extension == ""
        assert "<none>" in exc.value.message

    def test_unsupported_kind_checked_before_reading(self, registry, tmp_path):
        # the file does not exist; the kind error wins
        with pytest.raises(UnsupportedKindError):
            registry.load_module(tmp_path / "missing.png")

    def test_missing_file(self, registry, tmp_path):
        with pytest.raises(ModuleIOError) as exc:
            registry.load_module(tmp_path / "missing.js")
        assert exc.value.reason == "no such file"

    def test_register_custom_kind(self, registry, project):
        registry.register_kind([".txt", ".MD"], TextKind())
        assert ".txt" in registry.extensions()
        assert ".md" in registry.extensions()

        root = project({"notes.txt": "hello"})
        module = registry.load_module(root / "notes.txt")
        assert module.kind == "text"
        assert module.handler.find_dependencies(module.parsed) == []
        assert module.transformed_content == 'exports.default = "hello";'

    def test_register_overrides_existing(self, registry):
        replacement = StylesheetKind()
        registry.register_kind(".css", replacement)
        assert registry.handler_for(Path("x.css")) is replacement


class TestScriptKind:
    def test_load_and_dependencies(self, registry, project):
        root = project({"main.js": 'import a from "./a.js";\nimport "./style.css";\nexport * from "./b.js";\n'})
        module = registry.load_module(root / "main.js")
        assert isinstance(module.parsed, ParsedScript)
        assert module.handler.find_dependencies(module.parsed) == ["./a.js", "./style.css", "./b.js"]
        assert not module.is_initialized
        assert module.dependencies == ()

    def test_syntax_error_names_the_file(self, registry, project):
        root = project({"broken.js": "export const = 1;\n"})
        with pytest.raises(ParseError) as exc:
            registry.load_module(root / "broken.js")
        assert exc.value.location.file == str(root / "broken.js")

    def test_default_parser_is_created(self):
        assert ScriptKind().parser is not None


class TestStylesheetKind:
    def test_injects_style_element(self, registry, project):
        css = 'body { content: "x"; }\n'
        root = project({"theme.css": css})
        module = registry.load_module(root / "theme.css")
        assert module.parsed is None
        assert module.handler.find_dependencies(module.parsed) == []
        assert module.transformed_content == (
            'var style = document.createElement("style");\n'
            'style.textContent = "body { content: \\"x\\"; }\\n";\n'
            'document.head.appendChild(style);'
        )


class TestJsonKind:
    def test_default_export(self, registry, project):
        root = project({"data.json": '{"answer": 42, "list": [1, 2]}'})
        module = registry.load_module(root / "data.json")
        assert module.parsed == {"answer": 42, "list": [1, 2]}
        assert module.transformed_content == 'exports.default = {"answer": 42, "list": [1, 2]};'

    def test_invalid_json(self, project):
        root = project({"bad.json": '{\n  "a": 1\n  "b": 2\n}'})
        with pytest.raises(ParseError) as exc:
            JsonKind().load(root / "bad.json", (root / "bad.json").read_text())
        assert exc.value.message.startswith("invalid JSON")
        assert exc.value.location.line == 3


def test_transformed_content_is_cached():
    calls = []

    class CountingKind(TextKind):
        def transform(self, module):
            calls.append(module)
            return super().transform(module)

    module = Module(path=Path("/app/a.txt"), kind="text", raw_content="a", parsed="a", handler=CountingKind())
    assert module.transformed_content == module.transformed_content
    assert len(calls) == 1
