"""
Tests for the build driver: artifacts, HTML pages and all-or-nothing output.
"""

import pytest

from packlet import Artifact, BuildOptions, build
from packlet.compiler.driver import BundleDriver, inject_script_tags
from packlet.frontend.parser import ParseError
from packlet.shared.errors import ModuleIOError, ResolutionError, UnsupportedKindError

PAGE = "<html>\n<body>\n<h1>hi</h1>\n</body>\n</html>\n"


class TestInjectScriptTags:
    def test_before_closing_body(self):
        assert inject_script_tags(PAGE, ["bundle.js"]) == (
            '<html>\n<body>\n<h1>hi</h1>\n<script src="/bundle.js"></script></body>\n</html>\n'
        )

    def test_case_insensitive(self):
        page = "<BODY>x</BODY>"
        assert inject_script_tags(page, ["b.js"]) == '<BODY>x<script src="/b.js"></script></BODY>'

    def test_last_closing_body_wins(self):
        page = "<body><!-- </body> --></body>"
        assert inject_script_tags(page, ["b.js"]) == '<body><!-- </body> --><script src="/b.js"></script></body>'

    def test_appended_without_body(self):
        assert inject_script_tags("<p>x</p>", ["b.js"]) == '<p>x</p><script src="/b.js"></script>'

    def test_several_scripts_in_order(self):
        assert inject_script_tags("", ["a.js", "b.js"]) == (
            '<script src="/a.js"></script><script src="/b.js"></script>'
        )


class TestBuild:
    def test_writes_bundle(self, project, tmp_path):
        root = project({"src/main.js": 'console.log("hi");\n'})
        out = tmp_path / "dist"
        artifacts = build(root / "src/main.js", out)
        assert [a.name for a in artifacts] == ["bundle.js"]
        assert (out / "bundle.js").read_text(encoding="utf-8") == artifacts[0].content

    def test_existing_bundle_overwritten(self, project, tmp_path):
        root = project({"main.js": "", "dist/bundle.js": "stale"})
        build(root / "main.js", root / "dist")
        assert (root / "dist/bundle.js").read_text(encoding="utf-8") != "stale"

    def test_html_artifact(self, project, tmp_path):
        root = project({"main.js": "", "page.html": PAGE})
        out = tmp_path / "out"
        artifacts = build(root / "main.js", out, html_template=root / "page.html")
        assert [a.name for a in artifacts] == ["bundle.js", "page.html"]
        html = (out / "page.html").read_text(encoding="utf-8")
        assert html == inject_script_tags(PAGE, ["bundle.js"])

    def test_custom_bundle_name_in_html(self, project, tmp_path):
        root = project({"main.js": "", "index.html": PAGE})
        artifacts = build(root / "main.js", tmp_path / "out", root / "index.html",
                          options=BuildOptions(bundle_name="app.js"))
        assert '<script src="/app.js"></script>' in artifacts[1].content
        assert (tmp_path / "out/app.js").is_file()

    def test_compile_writes_nothing(self, project, tmp_path):
        root = project({"main.js": ""})
        artifacts = BundleDriver().compile(root / "main.js")
        assert artifacts == [Artifact("bundle.js", artifacts[0].content)]
        assert not (tmp_path / "bundle.js").exists()

    def test_builds_are_independent(self, project, tmp_path):
        root = project({"main.js": 'import "./a.js";\n', "a.js": ""})
        first = build(root / "main.js", tmp_path / "one")
        (root / "a.js").write_text("export const changed = 1;\n", encoding="utf-8")
        second = build(root / "main.js", tmp_path / "two")
        assert first[0].content != second[0].content
        assert "exports.changed = changed;" in second[0].content


class TestFailedBuildsWriteNothing:
    @pytest.mark.parametrize("files, error", [
        ({"main.js": 'import "./missing.js";\n'}, ModuleIOError),
        ({"main.js": 'import "left-pad";\n'}, ResolutionError),
        ({"main.js": 'import "./logo.svg";\n', "logo.svg": ""}, UnsupportedKindError),
        ({"main.js": 'import "./bad.js";\n', "bad.js": "const = 1;\n"}, ParseError),
    ])
    def test_graph_errors(self, project, tmp_path, files, error):
        root = project(files)
        out = tmp_path / "dist"
        with pytest.raises(error):
            build(root / "main.js", out)
        assert not out.exists()

    def test_missing_template(self, project, tmp_path):
        root = project({"main.js": ""})
        out = tmp_path / "dist"
        with pytest.raises(ModuleIOError):
            build(root / "main.js", out, html_template=root / "missing.html")
        assert not out.exists()

    def test_missing_entry(self, tmp_path):
        with pytest.raises(ModuleIOError):
            build(tmp_path / "main.js", tmp_path / "dist")
        assert not (tmp_path / "dist").exists()
