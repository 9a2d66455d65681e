"""
Build Context

Pattern: single owner of per-build state

Everything a build mutates (the module cache) and everything it is
configured with (kinds, resolver, options) lives on one BuildContext,
created per build() call and dropped when it returns. Nothing is cached at
process scope except the compiled grammar.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from ..analysis.module_system import KindRegistry, ModuleCache, ModuleLoader, PathResolver
from ..frontend.parser import Parser
from ..utils.config import DEFAULT_BUNDLE_NAME, PACKAGE_ENTRY_FIELDS, PROBE_EXTENSIONS


@dataclass(frozen=True)
class BuildOptions:
    """Per-build overrides of the defaults in utils.config."""
    bundle_name: str = DEFAULT_BUNDLE_NAME
    probe_extensions: Tuple[str, ...] = PROBE_EXTENSIONS
    package_entry_fields: Tuple[str, ...] = PACKAGE_ENTRY_FIELDS


class BuildContext:
    """
    State of one build invocation.

    - options: BuildOptions
    - registry: module kinds by extension
    - resolver: specifier resolution
    - cache: canonical path -> Module, filled by the loader
    """

    def __init__(self, options: Optional[BuildOptions] = None, registry: Optional[KindRegistry] = None,
                 parser: Optional[Parser] = None):
        self.options = options if options is not None else BuildOptions()
        self.registry = registry if registry is not None else KindRegistry.with_default_kinds(parser)
        self.resolver = PathResolver(
            extensions=self.options.probe_extensions,
            entry_fields=self.options.package_entry_fields,
        )
        self.cache = ModuleCache()
        self.loader = ModuleLoader(self.registry, self.resolver, self.cache)
