"""
Tests for import specifier resolution.
"""

import logging
from pathlib import Path

import pytest

from packlet.analysis.module_system import PathResolver, canonical_path, is_relative_specifier
from packlet.shared.errors import ResolutionError


def test_relative_specifier_detection():
    assert is_relative_specifier("./a.js")
    assert is_relative_specifier("../a")
    assert is_relative_specifier("/abs/a.js")
    assert is_relative_specifier(".")
    assert not is_relative_specifier("lodash")
    assert not is_relative_specifier("@scope/pkg")


def test_canonical_path_normalises(tmp_path):
    messy = tmp_path / "src" / ".." / "src" / "./a.js"
    assert canonical_path(messy) == canonical_path(tmp_path / "src" / "a.js")


class TestRelative:
    def test_exact_file(self, resolver, project):
        root = project({"src/main.js": "", "src/util.js": ""})
        assert resolver.resolve(root / "src/main.js", "./util.js") == canonical_path(root / "src/util.js")

    def test_parent_directory(self, resolver, project):
        root = project({"src/app/main.js": "", "src/shared.js": ""})
        resolved = resolver.resolve(root / "src/app/main.js", "../shared.js")
        assert resolved == canonical_path(root / "src/shared.js")

    def test_extension_probe(self, resolver, project):
        root = project({"main.js": "", "util.js": "", "data.json": "{}"})
        assert resolver.resolve(root / "main.js", "./util") == canonical_path(root / "util.js")
        assert resolver.resolve(root / "main.js", "./data") == canonical_path(root / "data.json")

    def test_directory_index(self, resolver, project):
        root = project({"main.js": "", "widgets/index.js": ""})
        assert resolver.resolve(root / "main.js", "./widgets") == canonical_path(root / "widgets/index.js")

    def test_absolute_specifier(self, resolver, project):
        root = project({"main.js": "", "lib/a.js": ""})
        target = canonical_path(root / "lib/a.js")
        assert resolver.resolve(root / "main.js", str(target)) == target

    def test_missing_file_returns_joined_path(self, resolver, project):
        root = project({"main.js": ""})
        assert resolver.resolve(root / "main.js", "./nope.js") == canonical_path(root / "nope.js")

    def test_parent_of_root_level_module(self, resolver):
        resolved = resolver.resolve(Path("/a.js"), "..")
        assert resolved in (Path("/"), Path("/index.js"))

    def test_same_file_through_different_specifiers(self, resolver, project):
        root = project({"a/main.js": "", "b/util.js": ""})
        one = resolver.resolve(root / "a/main.js", "../b/util.js")
        two = resolver.resolve(root / "b/util.js", "./util.js")
        assert one == two

    def test_custom_extensions(self, project):
        root = project({"main.js": "", "view.jsx": ""})
        resolver = PathResolver(extensions=(".jsx",))
        assert resolver.resolve(root / "main.js", "./view") == canonical_path(root / "view.jsx")


class TestBare:
    def test_package_main_field(self, resolver, project):
        root = project({
            "src/main.js": "",
            "node_modules/pkg/package.json": '{"main": "lib/entry.js"}',
            "node_modules/pkg/lib/entry.js": "",
        })
        resolved = resolver.resolve(root / "src/main.js", "pkg")
        assert resolved == canonical_path(root / "node_modules/pkg/lib/entry.js")

    def test_module_field_preferred(self, resolver, project):
        root = project({
            "main.js": "",
            "node_modules/pkg/package.json": '{"module": "esm.js", "main": "cjs.js"}',
            "node_modules/pkg/esm.js": "",
            "node_modules/pkg/cjs.js": "",
        })
        assert resolver.resolve(root / "main.js", "pkg") == canonical_path(root / "node_modules/pkg/esm.js")

    def test_package_index_fallback(self, resolver, project):
        root = project({"main.js": "", "node_modules/pkg/index.js": ""})
        assert resolver.resolve(root / "main.js", "pkg") == canonical_path(root / "node_modules/pkg/index.js")

    def test_file_inside_package(self, resolver, project):
        root = project({"main.js": "", "node_modules/pkg/extra/tool.js": ""})
        resolved = resolver.resolve(root / "main.js", "pkg/extra/tool")
        assert resolved == canonical_path(root / "node_modules/pkg/extra/tool.js")

    def test_scoped_package(self, resolver, project):
        root = project({"main.js": "", "node_modules/@org/ui/index.js": ""})
        assert resolver.resolve(root / "main.js", "@org/ui") == canonical_path(root / "node_modules/@org/ui/index.js")

    def test_closest_node_modules_wins(self, resolver, project):
        root = project({
            "app/main.js": "",
            "app/node_modules/pkg/index.js": "",
            "node_modules/pkg/index.js": "",
        })
        resolved = resolver.resolve(root / "app/main.js", "pkg")
        assert resolved == canonical_path(root / "app/node_modules/pkg/index.js")

    def test_falls_back_to_outer_node_modules(self, resolver, project):
        root = project({
            "app/main.js": "",
            "app/node_modules/other/index.js": "",
            "node_modules/pkg/index.js": "",
        })
        assert resolver.resolve(root / "app/main.js", "pkg") == canonical_path(root / "node_modules/pkg/index.js")

    def test_malformed_manifest_is_skipped(self, resolver, project, caplog):
        root = project({
            "main.js": "",
            "node_modules/pkg/package.json": "{not json",
            "node_modules/pkg/index.js": "",
        })
        with caplog.at_level(logging.WARNING):
            resolved = resolver.resolve(root / "main.js", "pkg")
        assert resolved == canonical_path(root / "node_modules/pkg/index.js")
        assert "malformed" in caplog.text

    def test_unresolvable_bare_specifier(self, resolver, project):
        root = project({"src/main.js": "", "node_modules/other/index.js": ""})
        with pytest.raises(ResolutionError) as exc:
            resolver.resolve(root / "src/main.js", "missing-pkg")
        err = exc.value
        assert err.specifier == "missing-pkg"
        assert err.requester == str(canonical_path(root / "src/main.js"))
        assert str(canonical_path(root / "node_modules")) in err.searched
        assert "cannot resolve 'missing-pkg'" in err.message
