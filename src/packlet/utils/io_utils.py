"""
Centralized file I/O utilities.

- Single place for encoding handling
- Use Path.read_text()/write_text() consistently (no raw open/read)
- OSError is translated to ModuleIOError so callers see one error family
"""

import logging
from pathlib import Path
from typing import Union

from .config import DEFAULT_FILE_ENCODING
from ..shared.errors import ModuleIOError

logger = logging.getLogger(__name__)


def read_source_file(path: Union[Path, str]) -> str:
    """Read source file with standard encoding."""
    p = Path(path) if not isinstance(path, Path) else path
    try:
        return p.read_text(encoding=DEFAULT_FILE_ENCODING)
    except (OSError, UnicodeDecodeError) as e:
        raise ModuleIOError(str(p), _describe(e)) from e


def write_output_file(path: Union[Path, str], content: str) -> Path:
    """Write an artifact, creating missing parent directories."""
    p = Path(path) if not isinstance(path, Path) else path
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding=DEFAULT_FILE_ENCODING)
    except OSError as e:
        raise ModuleIOError(str(p), _describe(e)) from e
    logger.debug(f"wrote {len(content)} chars to {p}")
    return p


def _describe(error: Exception) -> str:
    if isinstance(error, FileNotFoundError):
        return "no such file"
    if isinstance(error, IsADirectoryError):
        return "is a directory"
    if isinstance(error, PermissionError):
        return "permission denied"
    if isinstance(error, UnicodeDecodeError):
        return f"not valid {DEFAULT_FILE_ENCODING} text"
    return getattr(error, "strerror", None) or str(error)
