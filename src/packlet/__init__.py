"""
packlet - bundle JavaScript modules into one script.

    from packlet import build
    build("src/index.js", "dist", html_template="src/index.html")
"""

from .compiler import Artifact, BuildOptions, build
from .frontend import parse
from .shared.errors import (
    PackletError,
    ModuleIOError,
    ResolutionError,
    UnsupportedKindError,
    PackletImplementationError,
)
from .frontend.parser import ParseError

__version__ = "0.1.0"

__all__ = [
    'build',
    'Artifact',
    'BuildOptions',
    'parse',
    'PackletError',
    'ModuleIOError',
    'ResolutionError',
    'UnsupportedKindError',
    'ParseError',
    'PackletImplementationError',
]
