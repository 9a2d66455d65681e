"""Shared infrastructure: source locations, errors, lexical scopes."""

from .source_location import SourceLocation
from .errors import (
    PackletError,
    PackletSourceError,
    PackletImplementationError,
    ModuleIOError,
    ResolutionError,
    UnsupportedKindError,
)

__all__ = [
    'SourceLocation',
    'PackletError',
    'PackletSourceError',
    'PackletImplementationError',
    'ModuleIOError',
    'ResolutionError',
    'UnsupportedKindError',
]
