"""
Module System Types

One loaded source file and its place in the dependency graph.

Pattern: module record (identity, kind, content, edges, lazy output)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, Tuple

from ...shared.errors import PackletImplementationError

if TYPE_CHECKING:
    from .kinds import ModuleKindHandler


@dataclass(eq=False)
class Module:
    """
    A loaded module.

    - path: canonical absolute path, the module's identity within a build
    - kind: name of the kind handler chosen by extension
    - raw_content / parsed: immutable after load
    - dependencies: set once, in source order of the requests
    - transformed_content: computed on first access, after the graph is complete
    """
    path: Path
    kind: str
    raw_content: str
    parsed: Any
    handler: "ModuleKindHandler" = field(repr=False)
    resolved_requests: Dict[str, Path] = field(default_factory=dict, repr=False)
    _dependencies: Optional[Tuple["Module", ...]] = field(default=None, repr=False)
    _transformed: Optional[str] = field(default=None, repr=False)

    @property
    def key(self) -> str:
        """Identifier of this module in the runtime module map."""
        return self.path.as_posix()

    @property
    def is_initialized(self) -> bool:
        return self._dependencies is not None

    @property
    def dependencies(self) -> Tuple["Module", ...]:
        # Empty while the module is still being initialised (mid-cycle)
        return self._dependencies if self._dependencies is not None else ()

    def set_dependencies(self, modules: Iterable["Module"], resolved_requests: Dict[str, Path]) -> None:
        if self._dependencies is not None:
            raise PackletImplementationError(f"dependencies of {self.path} initialised twice")
        self._dependencies = tuple(modules)
        self.resolved_requests = dict(resolved_requests)

    @property
    def transformed_content(self) -> str:
        if self._transformed is None:
            self._transformed = self.handler.transform(self)
        return self._transformed

    def request_key(self, specifier: str) -> str:
        """Module-map key that `specifier` resolved to."""
        try:
            return self.resolved_requests[specifier].as_posix()
        except KeyError:
            raise PackletImplementationError(
                f"'{specifier}' was not resolved while loading {self.path}"
            ) from None

    def __str__(self) -> str:
        return f"Module({self.kind}, {self.path}, {len(self.dependencies)} deps)"
