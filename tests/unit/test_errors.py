"""
Tests for the error taxonomy and diagnostic formatting.
"""

import pytest

from packlet import (
    ModuleIOError,
    PackletError,
    PackletImplementationError,
    ParseError,
    ResolutionError,
    UnsupportedKindError,
)
from packlet.shared.errors import Error, PackletSourceError, format_diagnostic
from packlet.shared.source_location import SourceLocation


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    monkeypatch.setenv("NO_COLOR", "1")


def test_error_family():
    for cls in (ModuleIOError, ResolutionError, UnsupportedKindError, ParseError):
        assert issubclass(cls, PackletError)
    assert issubclass(ParseError, PackletSourceError)
    assert not issubclass(PackletImplementationError, PackletError)


@pytest.mark.parametrize("error, code", [
    (ModuleIOError("/a.js", "no such file"), "E0200"),
    (ResolutionError("/a.js", "pkg"), "E0300"),
    (UnsupportedKindError("/a.svg", ".svg"), "E0400"),
    (ParseError("bad", "/a.js"), "E0100"),
])
def test_error_codes(error, code):
    assert error.error_code == code


def test_io_error_message():
    err = ModuleIOError("/app/a.js", "no such file")
    assert str(err) == "cannot access '/app/a.js': no such file"
    assert (err.path, err.reason) == ("/app/a.js", "no such file")


def test_resolution_error_lists_searched_directories():
    err = ResolutionError("/app/main.js", "pkg", ["/app/node_modules", "/node_modules"])
    assert err.message == "cannot resolve 'pkg' imported from '/app/main.js'"
    assert err.help == "searched: /app/node_modules, /node_modules"
    assert str(err) == (
        "error[E0300]: cannot resolve 'pkg' imported from '/app/main.js'\n"
        "  |\n"
        "  = help: searched: /app/node_modules, /node_modules"
    )


def test_resolution_error_without_search_list():
    err = ResolutionError("/app/main.js", "pkg")
    assert err.help is None
    assert str(err) == "error[E0300]: cannot resolve 'pkg' imported from '/app/main.js'"


def test_located_error_str():
    err = PackletError("boom", SourceLocation("a.js", 2, 5))
    assert str(err) == "error[E0001]: boom\n --> a.js:2:5"


def test_implementation_error_str():
    assert str(PackletImplementationError("broken")) == "[E9999] broken"


class TestFormatting:
    def test_snippet_and_carets(self):
        source = "let a = 1;\nlet b = ;\n"
        err = ParseError("unexpected token ';'", "x.js",
                         SourceLocation("x.js", 2, 9, start=19, end=20, end_line=2, end_column=10),
                         source_code=source, label="expected one of: identifier")
        assert str(err) == (
            "error[E0100]: unexpected token ';'\n"
            " --> x.js:2:9\n"
            "  |\n"
            "2 | let b = ;\n"
            "  |         ^ expected one of: identifier"
        )

    def test_without_source(self):
        text = format_diagnostic(Error("lost", SourceLocation("gone.js", 1, 1), code="E0100"), {})
        assert text == "error[E0100]: lost\n --> gone.js:1:1"

    def test_without_location(self):
        text = format_diagnostic(Error("general", None, help="try again"), {})
        assert text == "error: general\n  |\n  = help: try again"

    def test_guessed_span(self):
        text = format_diagnostic(Error("bad name", SourceLocation("a.js", 1, 5), code="E0100"),
                                 {"a.js": "let abc = 1;"})
        assert text.splitlines()[-1] == "  |     ^^^"

    def test_color_toggle(self, monkeypatch):
        err = PackletSourceError("oops", SourceLocation("a.js", 1, 1), source_code="x")
        assert "\x1b[" not in str(err)
        monkeypatch.delenv("NO_COLOR")
        monkeypatch.setenv("PACKLET_COLOR", "never")
        assert "\x1b[" not in str(err)
        monkeypatch.setenv("PACKLET_COLOR", "")
        assert "\x1b[" in str(err)
