"""
Error Reporting

Pattern: rustc-style diagnostics (header, location arrow, snippet, carets)

Every failure a build can hit is a PackletError subclass. All of them are
fatal: the driver lets them propagate and nothing is written.
"""

import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .source_location import SourceLocation


# ---------------------------------------------------------------------------
# ANSI color helpers (disabled when NO_COLOR is set)
# ---------------------------------------------------------------------------

def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    explicit = os.environ.get("PACKLET_COLOR", "").lower()
    if explicit in ("0", "false", "no", "never"):
        return False
    return True

_BOLD   = "\033[1m"
_RED    = "\033[31m"
_BLUE   = "\033[34m"
_CYAN   = "\033[36m"
_RESET  = "\033[0m"

def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color:
        return text
    prefix = "".join(codes)
    return f"{prefix}{text}{_RESET}" if prefix else text


# ---------------------------------------------------------------------------
# Error dataclass
# ---------------------------------------------------------------------------

@dataclass
class Error:
    """One renderable diagnostic."""
    message: str
    location: Optional[SourceLocation]
    code: Optional[str] = None
    help: Optional[str] = None
    label: Optional[str] = None


# ---------------------------------------------------------------------------
# Formatting engine
# ---------------------------------------------------------------------------

def format_diagnostic(
    error: Error,
    source_files: Dict[str, str],
    color: bool = False,
) -> str:
    """
    Render a single diagnostic in rustc style.

    Example output (plain, no color)::

        error[E0100]: unexpected token '}'
         --> src/app.js:3:1
          |
        3 | }
          | ^ expected one of: ')', ','
    """
    out: List[str] = []

    code_str = f"[{error.code}]" if error.code else ""
    out.append(
        _style(f"error{code_str}", _BOLD, _RED, color=color)
        + _style(f": {error.message}", _BOLD, color=color)
    )

    if error.location is None:
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    loc = error.location
    source = source_files.get(loc.file)
    if source is None:
        out.append(
            _style(" --> ", _BOLD, _BLUE, color=color)
            + f"{loc.file}:{loc.line}:{loc.column}"
        )
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    src_lines = source.split("\n")
    idx = loc.line - 1
    code_line = src_lines[idx] if 0 <= idx < len(src_lines) else ""
    gw = max(len(str(loc.line)), 1)

    out.append(
        _style(" " * gw + "--> ", _BOLD, _BLUE, color=color)
        + f"{loc.file}:{loc.line}:{loc.column}"
    )
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))
    out.append(_style(str(loc.line).rjust(gw) + " | ", _BOLD, _BLUE, color=color) + code_line)

    col_start = max(loc.column, 1) - 1
    single_line = not loc.end_line or loc.end_line == loc.line
    if single_line and loc.end_column > loc.column:
        span_len = loc.end_column - loc.column
    else:
        span_len = _guess_span(code_line, col_start)
    carets = " " * col_start + "^" * max(1, span_len)
    label_suffix = f" {error.label}" if error.label else ""
    out.append(
        _style(" " * (gw + 1) + "| ", _BOLD, _BLUE, color=color)
        + _style(carets + label_suffix, _BOLD, _RED, color=color)
    )

    _append_annotations(out, error, gw, color)
    return "\n".join(out)


def _guess_span(code_line: str, col_start: int) -> int:
    """Guess token length when end_column is unavailable."""
    if col_start >= len(code_line):
        return 1
    length = 0
    for ch in code_line[col_start:]:
        if ch in (" ", "\t", ";", ",", ")", "]", "}"):
            break
        length += 1
    return max(1, length)


def _append_annotations(out: List[str], error: Error, gw: int, color: bool) -> None:
    if not error.help:
        return
    pad = " " * (gw + 1)
    out.append(_style(pad + "|", _BOLD, _BLUE, color=color))
    out.append(
        _style(f"{pad}= ", _BOLD, _CYAN, color=color)
        + _style("help: ", _BOLD, color=color)
        + error.help
    )


# ============================================================================
# Exception Classes
# ============================================================================

class PackletError(Exception):
    """Base exception for all packlet build errors"""
    error_code = "E0001"

    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self):
        if self.location:
            return f"error[{self.error_code}]: {self.message}\n --> {self.location}"
        return self.message


class PackletSourceError(PackletError):
    """
    Error in a module's source text with rich rustc-style formatting.

    Use this for errors that point into user code:
    - Syntax errors in scripts
    - Malformed JSON modules
    """
    def __init__(self,
                 message: str,
                 location: Optional[SourceLocation] = None,
                 error_code: str = "E0100",
                 source_code: Optional[str] = None,
                 label: Optional[str] = None):
        super().__init__(message, location)
        self.error_code = error_code
        self.source_code = source_code
        self.label_text = label

    def __str__(self):
        source_files: Dict[str, str] = {}
        if self.source_code is not None and self.location:
            source_files[self.location.file] = self.source_code
        err = Error(
            message=self.message,
            location=self.location,
            code=self.error_code,
            label=self.label_text,
        )
        return format_diagnostic(err, source_files, color=_use_color())


class ModuleIOError(PackletError):
    """A module or artifact file could not be read or written."""
    error_code = "E0200"

    def __init__(self, path: str, reason: str):
        super().__init__(f"cannot access '{path}': {reason}")
        self.path = path
        self.reason = reason


class ResolutionError(PackletError):
    """An import specifier could not be mapped to a file."""
    error_code = "E0300"

    def __init__(self, requester: str, specifier: str, searched: Sequence[str] = ()):
        super().__init__(f"cannot resolve '{specifier}' imported from '{requester}'")
        self.requester = requester
        self.specifier = specifier
        self.searched = list(searched)

    @property
    def help(self) -> Optional[str]:
        if not self.searched:
            return None
        return "searched: " + ", ".join(self.searched)

    def __str__(self):
        err = Error(message=self.message, location=None, code=self.error_code, help=self.help)
        return format_diagnostic(err, {}, color=_use_color())


class UnsupportedKindError(PackletError):
    """No module kind is registered for a file's extension."""
    error_code = "E0400"

    def __init__(self, path: str, extension: str):
        shown = extension or "<none>"
        super().__init__(f"no module kind registered for extension '{shown}' ({path})")
        self.path = path
        self.extension = extension


class PackletImplementationError(Exception):
    """
    Error in packlet itself (not in the code being bundled).

    Use this for broken internal invariants:
    - Overlapping source edits
    - A module registered twice in one build
    - Dependencies initialised twice
    """
    def __init__(self, message: str, error_code: str = "E9999"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self):
        return f"[{self.error_code}] {self.message}"
