"""
Scope resolution - lexical scopes of one JavaScript module.

Stack of scopes, each scope is name -> Binding. define = declare, lookup walks
inner -> outer. `var` and function-parameter bindings land in the nearest
function (or module) scope, everything else in the innermost scope.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generator, List, Optional


# -----------------------------------------------------------------------------
# Scope kind
# -----------------------------------------------------------------------------


class ScopeKind(Enum):
    MODULE = "module"
    FUNCTION = "function"
    BLOCK = "block"
    CLASS = "class"
    CATCH = "catch"


# -----------------------------------------------------------------------------
# Binding kind
# -----------------------------------------------------------------------------


class BindingType(Enum):
    IMPORT = "import"
    VAR = "var"
    LET = "let"
    CONST = "const"
    FUNCTION = "function"
    CLASS = "class"
    PARAMETER = "parameter"
    CATCH = "catch"


@dataclass
class ImportSource:
    """Where an import binding comes from: specifier plus imported name."""
    specifier: str
    imported: str  # "default", a named export, or "*" for namespaces


@dataclass
class Binding:
    """One name binding (value in scope dict)."""
    name: str
    binding_type: BindingType
    definition: Any
    scope: Scope
    source: Optional[ImportSource] = None

    @property
    def is_import(self) -> bool:
        return self.binding_type is BindingType.IMPORT


# -----------------------------------------------------------------------------
# Scope
# -----------------------------------------------------------------------------


@dataclass(eq=False)
class Scope:
    """
    One scope level. Single map: name -> Binding.
    define() overwrites (redeclaration); lookup() inner -> outer.
    """

    parent: Optional[Scope]
    kind: ScopeKind
    _bindings: Dict[str, Binding] = field(default_factory=dict)

    def lookup(self, name: str) -> Optional[Binding]:
        """Resolve a name along the scope chain, innermost first."""
        if name in self._bindings:
            return self._bindings[name]
        if self.parent is not None:
            return self.parent.lookup(name)
        return None

    def define(self, name: str, binding: Binding) -> None:
        self._bindings[name] = binding

    def names(self) -> List[str]:
        return list(self._bindings)

    @property
    def is_function_boundary(self) -> bool:
        return self.kind in (ScopeKind.FUNCTION, ScopeKind.MODULE)


# -----------------------------------------------------------------------------
# Scope manager
# -----------------------------------------------------------------------------


class ScopeManager:
    """
    Scope stack. enter_scope = push, exit_scope = pop.
    Every scope ever entered is remembered in `all_scopes`.
    """

    def __init__(self) -> None:
        self._stack: List[Scope] = []
        self._current: Optional[Scope] = None
        self.all_scopes: List[Scope] = []

    def enter_scope(self, kind: ScopeKind, parent: Optional[Scope] = None) -> Scope:
        p = parent if parent is not None else self._current
        scope = Scope(parent=p, kind=kind)
        self._stack.append(scope)
        self.all_scopes.append(scope)
        self._current = scope
        return scope

    def exit_scope(self) -> None:
        if not self._stack:
            raise RuntimeError("Cannot exit scope: no active scope")
        self._stack.pop()
        self._current = self._stack[-1] if self._stack else None

    @contextmanager
    def scope(self, kind: ScopeKind, parent: Optional[Scope] = None) -> Generator[Scope, None, None]:
        """Context manager: enter on __enter__, exit on __exit__."""
        s = self.enter_scope(kind, parent)
        try:
            yield s
        finally:
            self.exit_scope()

    def current_scope(self) -> Optional[Scope]:
        return self._current

    def function_scope(self) -> Optional[Scope]:
        """Nearest enclosing function or module scope (target of `var`)."""
        for s in reversed(self._stack):
            if s.is_function_boundary:
                return s
        return None
