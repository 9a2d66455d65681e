"""
Module Kinds

Extension-dispatched handlers that know how to load a file, which modules
it requests, and how to turn it into the body of a runtime factory.

Pattern: capability interface + registration map

Adding a kind means writing one ModuleKindHandler and registering it for its
extensions; the graph builder and bundler do not change.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .module_info import Module
from ...frontend.parser import ParseError, ParsedScript, Parser
from ..bindings import collect_module_requests
from ...passes import DEFAULT_RULES, RewriteContext, transform_tree
from ...shared.errors import UnsupportedKindError
from ...shared.source_location import SourceLocation
from ...utils.config import JSON_EXTENSIONS, SCRIPT_EXTENSIONS, STYLESHEET_EXTENSIONS
from ...utils.io_utils import read_source_file

logger = logging.getLogger(__name__)


class ModuleKindHandler(ABC):
    """Load, discover dependencies of, and transform one kind of module."""

    name: str = ""

    @abstractmethod
    def load(self, path: Path, raw: str) -> Any:
        """Raw text -> kind-specific parsed form."""

    def find_dependencies(self, parsed: Any) -> List[str]:
        """Specifiers requested by the module, in source order."""
        return []

    @abstractmethod
    def transform(self, module: Module) -> str:
        """Module -> script text run inside `function (exports, require) { ... }`."""


class ScriptKind(ModuleKindHandler):
    """JavaScript modules: parsed, scanned for imports, interface rewritten."""

    name = "script"

    def __init__(self, parser: Optional[Parser] = None, rules=DEFAULT_RULES):
        self.parser = parser if parser is not None else Parser()
        self.rules = rules

    def load(self, path: Path, raw: str) -> ParsedScript:
        return self.parser.parse(raw, str(path))

    def find_dependencies(self, parsed: ParsedScript) -> List[str]:
        return collect_module_requests(parsed.tree)

    def transform(self, module: Module) -> str:
        context = RewriteContext(module.key, module.request_key)
        return transform_tree(module.parsed, self.rules, context).text


class StylesheetKind(ModuleKindHandler):
    """CSS files: no dependencies; injected as a <style> element when required."""

    name = "stylesheet"

    def load(self, path: Path, raw: str) -> None:
        return None

    def transform(self, module: Module) -> str:
        return (
            'var style = document.createElement("style");\n'
            f'style.textContent = {json.dumps(module.raw_content)};\n'
            'document.head.appendChild(style);'
        )


class JsonKind(ModuleKindHandler):
    """JSON documents, exposed as the default export."""

    name = "json"

    def load(self, path: Path, raw: str) -> Any:
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            location = SourceLocation(file=str(path), line=e.lineno, column=e.colno, start=e.pos, end=e.pos + 1)
            raise ParseError(f"invalid JSON: {e.msg}", str(path), location, source_code=raw) from e

    def transform(self, module: Module) -> str:
        return f"exports.default = {json.dumps(module.parsed)};"


class KindRegistry:
    """Extension -> handler table used by the graph builder."""

    def __init__(self):
        self._handlers: Dict[str, ModuleKindHandler] = {}

    @classmethod
    def with_default_kinds(cls, parser: Optional[Parser] = None) -> "KindRegistry":
        registry = cls()
        registry.register_kind(SCRIPT_EXTENSIONS, ScriptKind(parser))
        registry.register_kind(STYLESHEET_EXTENSIONS, StylesheetKind())
        registry.register_kind(JSON_EXTENSIONS, JsonKind())
        return registry

    def register_kind(self, extension, handler: ModuleKindHandler) -> None:
        """Register `handler` for one extension (".js") or a sequence of them."""
        extensions: Sequence[str] = (extension,) if isinstance(extension, str) else extension
        for ext in extensions:
            self._handlers[ext.lower()] = handler
            logger.debug(f"registered module kind '{handler.name}' for {ext}")

    def extensions(self) -> List[str]:
        return list(self._handlers)

    def handler_for(self, path: Path) -> ModuleKindHandler:
        extension = path.suffix.lower()
        handler = self._handlers.get(extension)
        if handler is None:
            raise UnsupportedKindError(str(path), extension)
        return handler

    def load_module(self, path: Path) -> Module:
        """Read and parse one file into an uninitialised Module."""
        handler = self.handler_for(path)
        raw = read_source_file(path)
        parsed = handler.load(path, raw)
        logger.debug(f"loaded {handler.name} module {path} ({len(raw)} chars)")
        return Module(path=path, kind=handler.name, raw_content=raw, parsed=parsed, handler=handler)
