"""Module system: path resolution, module kinds, module loading."""

from .path_resolver import PathResolver, canonical_path, is_relative_specifier
from .module_info import Module
from .kinds import KindRegistry, ModuleKindHandler, ScriptKind, StylesheetKind, JsonKind
from .module_loader import ModuleCache, ModuleLoader

__all__ = [
    'PathResolver',
    'canonical_path',
    'is_relative_specifier',
    'Module',
    'KindRegistry',
    'ModuleKindHandler',
    'ScriptKind',
    'StylesheetKind',
    'JsonKind',
    'ModuleCache',
    'ModuleLoader',
]
