"""
Tests for graph building: one Module per canonical path, cycles, and the
errors a broken graph produces.
"""

import pytest

from packlet.analysis.module_system import ModuleCache, canonical_path
from packlet.frontend.parser import ParseError
from packlet.shared.errors import (
    ModuleIOError,
    PackletImplementationError,
    ResolutionError,
    UnsupportedKindError,
)


def _names(modules):
    return [m.path.name for m in modules]


class TestGraph:
    def test_single_module(self, loader, project):
        root = project({"main.js": "console.log(1);\n"})
        module = loader.get_or_load(root / "main.js")
        assert module.is_initialized
        assert module.dependencies == ()
        assert module.key == canonical_path(root / "main.js").as_posix()
        assert len(loader.cache) == 1

    def test_diamond_loads_shared_module_once(self, loader, project):
        root = project({
            "a.js": 'import "./b.js";\nimport "./c.js";\n',
            "b.js": 'import "./d.js";\n',
            "c.js": 'import "./d.js";\n',
            "d.js": "export default 1;\n",
        })
        a = loader.get_or_load(root / "a.js")
        b, c = a.dependencies
        assert _names(a.dependencies) == ["b.js", "c.js"]
        assert b.dependencies[0] is c.dependencies[0]
        assert len(loader.cache) == 4

    def test_different_specifiers_same_module(self, loader, project):
        root = project({
            "main.js": 'import "./lib";\nimport "./sub/../lib.js";\n',
            "lib.js": "",
        })
        main = loader.get_or_load(root / "main.js")
        first, second = main.dependencies
        assert first is second
        assert main.request_key("./lib") == main.request_key("./sub/../lib.js")

    def test_cycle_terminates(self, loader, project):
        root = project({
            "a.js": 'import { b } from "./b.js";\nexport const a = 1;\n',
            "b.js": 'import { a } from "./a.js";\nexport const b = 2;\n',
        })
        a = loader.get_or_load(root / "a.js")
        (b,) = a.dependencies
        assert b.dependencies == (a,)
        assert a.is_initialized and b.is_initialized
        assert len(loader.cache) == 2

    def test_self_import(self, loader, project):
        root = project({"me.js": 'import * as me from "./me.js";\nexport const x = me;\n'})
        me = loader.get_or_load(root / "me.js")
        assert me.dependencies == (me,)

    def test_duplicate_requests_keep_one_entry_per_declaration(self, loader, project):
        root = project({
            "main.js": 'import "./b.js";\nimport { x } from "./b.js";\nexport { y } from "./b.js";\n',
            "b.js": "export const x = 1, y = 2;\n",
        })
        main = loader.get_or_load(root / "main.js")
        assert _names(main.dependencies) == ["b.js", "b.js", "b.js"]
        assert list(main.resolved_requests) == ["./b.js"]

    def test_cache_hit_returns_same_instance(self, loader, project):
        root = project({"main.js": ""})
        assert loader.get_or_load(root / "main.js") is loader.get_or_load(root / "./main.js")

    def test_mixed_kinds(self, loader, project):
        root = project({
            "main.js": 'import "./theme.css";\nimport data from "./data.json";\n',
            "theme.css": "body {}",
            "data.json": "[1]",
        })
        main = loader.get_or_load(root / "main.js")
        assert [m.kind for m in main.dependencies] == ["stylesheet", "json"]

    def test_request_key_for_unknown_specifier(self, loader, project):
        root = project({"main.js": ""})
        main = loader.get_or_load(root / "main.js")
        with pytest.raises(PackletImplementationError):
            main.request_key("./never.js")


class TestGraphErrors:
    def test_missing_entry(self, loader, tmp_path):
        with pytest.raises(ModuleIOError):
            loader.get_or_load(tmp_path / "main.js")

    def test_missing_relative_import(self, loader, project):
        root = project({"main.js": 'import "./nope.js";\n'})
        with pytest.raises(ModuleIOError) as exc:
            loader.get_or_load(root / "main.js")
        assert exc.value.path == str(canonical_path(root / "nope.js"))

    def test_unresolvable_bare_import(self, loader, project):
        root = project({"main.js": 'import React from "react";\n'})
        with pytest.raises(ResolutionError):
            loader.get_or_load(root / "main.js")

    def test_unsupported_dependency_kind(self, loader, project):
        root = project({"main.js": 'import logo from "./logo.svg";\n', "logo.svg": "<svg/>"})
        with pytest.raises(UnsupportedKindError):
            loader.get_or_load(root / "main.js")

    def test_syntax_error_in_dependency(self, loader, project):
        root = project({"main.js": 'import "./bad.js";\n', "bad.js": "let = ;\n"})
        with pytest.raises(ParseError) as exc:
            loader.get_or_load(root / "main.js")
        assert exc.value.location.file.endswith("bad.js")


class TestInvariants:
    def test_dependencies_set_once(self, loader, project):
        root = project({"main.js": ""})
        main = loader.get_or_load(root / "main.js")
        with pytest.raises(PackletImplementationError):
            main.set_dependencies([], {})

    def test_cache_rejects_second_insert(self, loader, project):
        root = project({"main.js": ""})
        main = loader.get_or_load(root / "main.js")
        cache = ModuleCache()
        cache.insert(main)
        assert main.path in cache
        with pytest.raises(PackletImplementationError):
            cache.insert(main)
        assert list(cache) == [main]
