"""
Module Path Resolution

Maps (requesting file, import specifier) to a canonical file path.

Pattern: node-style resolution (relative join, then node_modules walk)

- ./x, ../x, /x → joined against the requester's directory, normalised
- bare names → <ancestor>/node_modules/<name>, closest ancestor first

This class is stateless apart from its configuration and can be shared.
"""

import json
import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ...shared.errors import ResolutionError
from ...utils.config import (
    DEPENDENCY_DIRECTORY,
    INDEX_FILE_NAME,
    PACKAGE_ENTRY_FIELDS,
    PACKAGE_MANIFEST,
    PROBE_EXTENSIONS,
    RELATIVE_PREFIXES,
)
from ...utils.io_utils import read_source_file

logger = logging.getLogger(__name__)


def canonical_path(path: Union[Path, str]) -> Path:
    """Absolute, normalised path used as a module's identity (symlinks kept)."""
    return Path(os.path.normpath(os.path.abspath(str(path))))


def is_relative_specifier(specifier: str) -> bool:
    return specifier.startswith(RELATIVE_PREFIXES) or specifier in (".", "..")


class PathResolver:
    """
    Resolver for import specifiers.

    Relative specifiers always produce a path: when neither the joined path
    nor a probed variant exists, the joined path is returned and the loader
    reports the missing file. Bare specifiers that match nothing raise
    ResolutionError.
    """

    def __init__(
        self,
        extensions: Sequence[str] = PROBE_EXTENSIONS,
        entry_fields: Sequence[str] = PACKAGE_ENTRY_FIELDS,
        dependency_directory: str = DEPENDENCY_DIRECTORY,
    ):
        self.extensions = tuple(extensions)
        self.entry_fields = tuple(entry_fields)
        self.dependency_directory = dependency_directory

    def resolve(self, requester: Union[Path, str], specifier: str) -> Path:
        """Resolve `specifier` as imported from the file `requester`."""
        requester = canonical_path(requester)
        if is_relative_specifier(specifier):
            joined = canonical_path(requester.parent / specifier)
            resolved = self._probe(joined) or joined
        else:
            resolved = self._resolve_bare(requester, specifier)
        logger.debug(f"resolved '{specifier}' from {requester} -> {resolved}")
        return resolved

    def _resolve_bare(self, requester: Path, specifier: str) -> Path:
        searched: List[str] = []
        for ancestor in (requester.parent, *requester.parent.parents):
            base = ancestor / self.dependency_directory
            searched.append(str(base))
            if not base.is_dir():
                continue
            candidate = canonical_path(base / specifier)
            found = (self._probe(candidate, index=False)
                     or self._package_entry(candidate)
                     or self._probe_index(candidate))
            if found is not None:
                return found
        raise ResolutionError(str(requester), specifier, searched)

    def _probe(self, candidate: Path, index: bool = True) -> Optional[Path]:
        """The file itself, then the file with each extension, then dir/index.js."""
        if candidate.is_file():
            return candidate
        # a filesystem root has no name to extend
        if candidate.name:
            for ext in self.extensions:
                with_ext = candidate.with_name(candidate.name + ext)
                if with_ext.is_file():
                    return with_ext
        return self._probe_index(candidate) if index else None

    def _probe_index(self, directory: Path) -> Optional[Path]:
        index = directory / INDEX_FILE_NAME
        return index if index.is_file() else None

    def _package_entry(self, package_dir: Path) -> Optional[Path]:
        """Entry file named by a package's manifest."""
        manifest = package_dir / PACKAGE_MANIFEST
        if not manifest.is_file():
            return None
        try:
            fields = json.loads(read_source_file(manifest))
        except json.JSONDecodeError as e:
            logger.warning(f"ignoring malformed {manifest}: {e}")
            return None
        if not isinstance(fields, dict):
            return None
        for name in self.entry_fields:
            entry = fields.get(name)
            if isinstance(entry, str) and entry:
                found = self._probe(canonical_path(package_dir / entry))
                if found is not None:
                    return found
        return None
