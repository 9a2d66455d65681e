"""
Module Loader

Builds the dependency graph of one build.

Pattern: memoised depth-first loader with insert-before-recurse

A module is registered in the cache before its dependencies are loaded.
When an import chain comes back to a module that is still being
initialised, the cached (incomplete) instance is returned, which is what
makes import cycles terminate.
"""

import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from .kinds import KindRegistry
from .module_info import Module
from .path_resolver import PathResolver, canonical_path
from ...shared.errors import PackletImplementationError

logger = logging.getLogger(__name__)


class ModuleCache:
    """Canonical path -> Module, for the lifetime of one build."""

    def __init__(self):
        self._modules: Dict[Path, Module] = {}

    def get(self, path: Path) -> Optional[Module]:
        return self._modules.get(path)

    def insert(self, module: Module) -> None:
        if module.path in self._modules:
            raise PackletImplementationError(f"module {module.path} registered twice")
        self._modules[module.path] = module

    def __contains__(self, path: Path) -> bool:
        return path in self._modules

    def __len__(self) -> int:
        return len(self._modules)

    def __iter__(self) -> Iterator[Module]:
        return iter(self._modules.values())


class ModuleLoader:
    """
    Graph builder.

    This class:
    - Dispatches files to module kinds through the registry
    - Resolves every request against the requesting module's own path
    - Keeps exactly one Module per canonical path
    """

    def __init__(self, registry: KindRegistry, resolver: PathResolver, cache: Optional[ModuleCache] = None):
        self.registry = registry
        self.resolver = resolver
        self.cache = cache if cache is not None else ModuleCache()

    def get_or_load(self, path: Union[Path, str]) -> Module:
        """Module for `path`, loading it and everything it imports on first request."""
        path = canonical_path(path)
        cached = self.cache.get(path)
        if cached is not None:
            state = "" if cached.is_initialized else " (still initialising)"
            logger.debug(f"module cache hit: {path}{state}")
            return cached

        module = self.registry.load_module(path)
        self.cache.insert(module)

        dependencies: List[Module] = []
        resolved: Dict[str, Path] = {}
        for specifier in module.handler.find_dependencies(module.parsed):
            target = resolved.get(specifier)
            if target is None:
                target = self.resolver.resolve(path, specifier)
                resolved[specifier] = target
            dependencies.append(self.get_or_load(target))
        module.set_dependencies(dependencies, resolved)
        logger.debug(f"initialised {path}: {len(dependencies)} dependencies")
        return module
