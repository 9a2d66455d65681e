"""
Binding Analysis

Pattern: scope-tracking tree interpreter (declare, then resolve)

Walks a parsed module once, builds its lexical scopes and records every
identifier reference together with the scope it appears in. References are
resolved after the walk, so hoisted declarations (functions, `var`) are seen
by uses that come before them in the text.

The result, ModuleInterface, is what the rewrite rules consume:
- the import declarations and the local bindings they introduce
- every reference, resolved to its binding (or None for globals)
- the module requests (import/export-from specifiers) in source order
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Union

from lark import Token, Tree
from lark.visitors import Interpreter

from ..frontend.lexer import decode_string_literal
from ..frontend.parser import ParsedScript
from ..shared.scope import Binding, BindingType, ImportSource, Scope, ScopeKind, ScopeManager

logger = logging.getLogger(__name__)

Node = Union[Tree, Token]

_DECLARATION_KINDS = {
    'VAR': BindingType.VAR,
    'LET': BindingType.LET,
    'CONST': BindingType.CONST,
}

_REQUEST_NODES = frozenset({'import_declaration', 'export_all_declaration', 'export_named_declaration'})


# -----------------------------------------------------------------------------
# Results
# -----------------------------------------------------------------------------


@dataclass
class ImportRecord:
    """One import declaration and the bindings it creates."""
    declaration: Tree
    specifier: str
    bindings: List[Binding] = field(default_factory=list)


@dataclass
class Reference:
    """
    One use of a name in expression position.

    `container` is set when the identifier is an object-literal shorthand
    (`{name}` or `{name = init}`); `is_callee` when it is called directly
    (`name(...)` or a tag of a tagged template).
    """
    node: Tree
    scope: Scope
    binding: Optional[Binding] = None
    container: Optional[Tree] = None
    is_callee: bool = False

    @property
    def name(self) -> str:
        return self.node.children[0].value

    @property
    def is_shorthand(self) -> bool:
        return self.container is not None


@dataclass
class ModuleInterface:
    module_scope: Scope
    imports: List[ImportRecord]
    references: List[Reference]
    requests: List[str]

    def import_references(self) -> List[Reference]:
        return [r for r in self.references if r.binding is not None and r.binding.is_import]

    def lookup(self, name: str) -> Optional[Binding]:
        """Resolve a name at module level."""
        return self.module_scope.lookup(name)


# -----------------------------------------------------------------------------
# Small tree helpers
# -----------------------------------------------------------------------------


def subtrees(node: Tree, data: Optional[str] = None) -> Iterator[Tree]:
    """Direct Tree children, optionally only those named `data`."""
    for child in node.children:
        if isinstance(child, Tree) and (data is None or child.data == data):
            yield child


def first_subtree(node: Tree, data: str) -> Optional[Tree]:
    return next(subtrees(node, data), None)


def specifier_of(node: Tree) -> Optional[str]:
    """Decoded module specifier of an import/export-from declaration."""
    spec = first_subtree(node, 'module_specifier')
    if spec is None:
        return None
    return decode_string_literal(spec.children[0].value)


def export_name(token: Token) -> str:
    """Value of an export/import name written as identifier, keyword or string."""
    if token.type == 'STRING':
        return decode_string_literal(token.value)
    return token.value


def collect_module_requests(tree: Tree) -> List[str]:
    """Specifiers requested by a module, in source order, duplicates kept."""
    requests = []
    for item in subtrees(tree):
        if item.data in _REQUEST_NODES:
            spec = specifier_of(item)
            if spec is not None:
                requests.append(spec)
    return requests


def bound_names(target: Node) -> List[Token]:
    """IDENT tokens declared by a binding target (identifier or pattern)."""
    names: List[Token] = []
    _collect_bound_names(target, names)
    return names


def _collect_bound_names(node: Node, out: List[Token]) -> None:
    if not isinstance(node, Tree):
        return
    if node.data == 'binding_identifier':
        out.append(node.children[0])
    elif node.data == 'binding_property':
        # {name}, {name = init}, {key: target}
        head = node.children[0]
        if isinstance(head, Tree) and head.data == 'binding_identifier':
            out.append(head.children[0])
        else:
            _collect_bound_names(node.children[1], out)
    elif node.data in ('binding_element', 'formal_parameter', 'variable_declarator'):
        _collect_bound_names(node.children[0], out)
    elif node.data in ('object_pattern', 'array_pattern', 'binding_rest', 'rest_parameter'):
        for child in subtrees(node):
            _collect_bound_names(child, out)


# -----------------------------------------------------------------------------
# Analyzer
# -----------------------------------------------------------------------------


class BindingAnalyzer(Interpreter):
    """
    Scope-building walk over one module tree.

    Declarations are placed as they are met; `var` goes to the nearest
    function scope, `let`/`const`/`class`/`function` to the innermost one.
    Identifier uses are collected with their scope and resolved at the end of analyze().
    """

    def __init__(self):
        super().__init__()
        self.scopes = ScopeManager()
        self.imports: List[ImportRecord] = []
        self.references: List[Reference] = []
        self.requests: List[str] = []

    def analyze(self, tree: Tree) -> ModuleInterface:
        with self.scopes.scope(ScopeKind.MODULE) as module_scope:
            self.visit(tree)
        for ref in self.references:
            ref.binding = ref.scope.lookup(ref.name)
        logger.debug(
            f"bindings: {len(module_scope.names())} module names, "
            f"{len(self.imports)} imports, {len(self.references)} references"
        )
        return ModuleInterface(module_scope, self.imports, self.references, self.requests)

    # -- declarations -------------------------------------------------------

    def _declare(self, token: Token, binding_type: BindingType, definition: Node,
                 source: Optional[ImportSource] = None, scope: Optional[Scope] = None) -> Binding:
        if scope is None:
            if binding_type in (BindingType.VAR, BindingType.PARAMETER):
                scope = self.scopes.function_scope()
            else:
                scope = self.scopes.current_scope()
        binding = Binding(token.value, binding_type, definition, scope, source)
        scope.define(token.value, binding)
        return binding

    def _declare_target(self, target: Node, binding_type: BindingType) -> None:
        """Declare every name in a binding target, then visit its initializers."""
        for token in bound_names(target):
            self._declare(token, binding_type, target)
        self._visit_pattern_values(target)

    def _visit_pattern_values(self, node: Node) -> None:
        """Visit default values and computed keys inside a binding pattern."""
        if not isinstance(node, Tree):
            return
        if node.data == 'binding_identifier':
            return
        if node.data in ('binding_property', 'binding_element'):
            for child in subtrees(node):
                if child.data in ('binding_identifier', 'object_pattern', 'array_pattern',
                                  'binding_element'):
                    self._visit_pattern_values(child)
                else:
                    self.visit(child)
            return
        for child in subtrees(node):
            self._visit_pattern_values(child)

    # -- module items ---------------------------------------------------------

    def import_declaration(self, tree: Tree):
        specifier = specifier_of(tree)
        self.requests.append(specifier)
        record = ImportRecord(tree, specifier)
        for clause in subtrees(tree):
            if clause.data == 'default_binding':
                ident = clause.children[0]
                record.bindings.append(self._declare(
                    ident.children[0], BindingType.IMPORT, ident, ImportSource(specifier, 'default')))
            elif clause.data == 'namespace_import':
                ident = clause.children[-1]
                record.bindings.append(self._declare(
                    ident.children[0], BindingType.IMPORT, ident, ImportSource(specifier, '*')))
            elif clause.data == 'named_imports':
                for spec in subtrees(clause, 'import_specifier'):
                    imported = export_name(spec.children[0])
                    local = spec.children[-1]
                    local_token = local.children[0] if isinstance(local, Tree) else local
                    record.bindings.append(self._declare(
                        local_token, BindingType.IMPORT, spec, ImportSource(specifier, imported)))
        self.imports.append(record)

    def export_all_declaration(self, tree: Tree):
        self.requests.append(specifier_of(tree))

    def export_named_declaration(self, tree: Tree):
        specifier = specifier_of(tree)
        if specifier is not None:
            self.requests.append(specifier)
            return
        self.visit_children(tree)

    def default_function(self, tree: Tree):
        name = first_subtree(tree, 'binding_identifier')
        if name is not None:
            self._declare(name.children[0], BindingType.FUNCTION, tree)
        self._function(tree)

    def default_class(self, tree: Tree):
        name = first_subtree(tree, 'binding_identifier')
        if name is not None:
            self._declare(name.children[0], BindingType.CLASS, tree)
        self._class(tree, None)

    # -- statements -----------------------------------------------------------

    def variable_declaration(self, tree: Tree):
        binding_type = _DECLARATION_KINDS[tree.children[0].type]
        for declarator in subtrees(tree, 'variable_declarator'):
            self._declarator(declarator, binding_type)

    def for_declaration(self, tree: Tree):
        self.variable_declaration(tree)

    def for_binding(self, tree: Tree):
        self._declare_target(tree.children[1], _DECLARATION_KINDS[tree.children[0].type])

    def _declarator(self, declarator: Tree, binding_type: BindingType) -> None:
        target, *init = declarator.children
        self._declare_target(target, binding_type)
        for value in init:
            self._visit_node(value)

    def block(self, tree: Tree):
        with self.scopes.scope(ScopeKind.BLOCK):
            self.visit_children(tree)

    def for_statement(self, tree: Tree):
        with self.scopes.scope(ScopeKind.BLOCK):
            self.visit_children(tree)

    for_in_statement = for_statement
    for_of_statement = for_statement

    def switch_statement(self, tree: Tree):
        self._visit_node(tree.children[1])
        with self.scopes.scope(ScopeKind.BLOCK):
            self._visit_all(tree.children[2:])

    def catch_clause(self, tree: Tree):
        with self.scopes.scope(ScopeKind.CATCH):
            for child in subtrees(tree):
                if child.data == 'block':
                    self.visit(child)
                else:
                    self._declare_target(child, BindingType.CATCH)

    def function_declaration(self, tree: Tree):
        name = first_subtree(tree, 'binding_identifier')
        self._declare(name.children[0], BindingType.FUNCTION, tree)
        self._function(tree)

    def class_declaration(self, tree: Tree):
        name = first_subtree(tree, 'binding_identifier')
        self._declare(name.children[0], BindingType.CLASS, tree)
        self._class(tree, None)

    # -- functions and classes ------------------------------------------------

    def function_expression(self, tree: Tree):
        self._function(tree, own_name=True)

    def _function(self, tree: Tree, own_name: bool = False) -> None:
        with self.scopes.scope(ScopeKind.FUNCTION):
            if own_name:
                name = first_subtree(tree, 'binding_identifier')
                if name is not None:
                    self._declare(name.children[0], BindingType.FUNCTION, tree,
                                  scope=self.scopes.current_scope())
            self._parameters(first_subtree(tree, 'formal_parameters'))
            self.visit_children(first_subtree(tree, 'function_body'))

    def _parameters(self, params: Tree) -> None:
        for param in subtrees(params):
            target, *default = param.children
            self._declare_target(target, BindingType.PARAMETER)
            for value in default:
                self._visit_node(value)

    def method_definition(self, tree: Tree):
        for key in subtrees(tree, 'computed_property_name'):
            self.visit(key)
        with self.scopes.scope(ScopeKind.FUNCTION):
            self._parameters(first_subtree(tree, 'formal_parameters'))
            self.visit_children(first_subtree(tree, 'function_body'))

    def class_expression(self, tree: Tree):
        name = first_subtree(tree, 'binding_identifier')
        self._class(tree, name)

    def _class(self, tree: Tree, own_name: Optional[Tree]) -> None:
        heritage = first_subtree(tree, 'class_heritage')
        if heritage is not None:
            self.visit_children(heritage)
        with self.scopes.scope(ScopeKind.CLASS):
            if own_name is not None:
                self._declare(own_name.children[0], BindingType.CLASS, tree)
            self.visit_children(first_subtree(tree, 'class_body'))

    def arrow_function(self, tree: Tree):
        params = first_subtree(tree, 'arrow_parameters')
        body = tree.children[-1]
        with self.scopes.scope(ScopeKind.FUNCTION):
            head = params.children[0]
            if head.data == 'binding_identifier':
                self._declare(head.children[0], BindingType.PARAMETER, head)
            else:
                for item in subtrees(head):
                    self._declare_cover(item)
            if isinstance(body, Tree) and body.data == 'function_body':
                self.visit_children(body)
            else:
                self._visit_node(body)

    async_arrow_function = arrow_function

    def _declare_cover(self, node: Tree) -> None:
        """Declare parameters written in expression syntax: `(a, {b}, [c] = d, ...e) =>`."""
        kind = node.data
        if kind == 'identifier':
            self._declare(node.children[0], BindingType.PARAMETER, node)
        elif kind == 'assignment_expression':
            target, value = node.children
            self._declare_cover(target)
            self._visit_node(value)
        elif kind in ('spread_element', 'shorthand_property'):
            self._declare_cover(node.children[0])
        elif kind == 'cover_initialized_name':
            self._declare_cover(node.children[0])
            self._visit_node(node.children[1])
        elif kind == 'property':
            key, value = node.children
            self._visit_node(key)
            self._declare_cover(value)
        elif kind in ('object_literal', 'array_literal'):
            for child in subtrees(node):
                self._declare_cover(child)

    # -- references -----------------------------------------------------------

    def identifier(self, tree: Tree):
        self._reference(tree)

    def _reference(self, tree: Tree, container: Optional[Tree] = None, is_callee: bool = False) -> None:
        self.references.append(Reference(tree, self.scopes.current_scope(), None, container, is_callee))

    def shorthand_property(self, tree: Tree):
        self._reference(tree.children[0], container=tree)

    def cover_initialized_name(self, tree: Tree):
        self._reference(tree.children[0], container=tree)
        self._visit_node(tree.children[1])

    def call_expression(self, tree: Tree):
        callee, *rest = tree.children
        if isinstance(callee, Tree) and callee.data == 'identifier':
            self._reference(callee, is_callee=True)
        else:
            self._visit_node(callee)
        self._visit_all(rest)

    tagged_template = call_expression

    def _visit_node(self, node: Node) -> None:
        if isinstance(node, Tree):
            self.visit(node)

    def _visit_all(self, nodes: Iterable[Node]) -> None:
        for node in nodes:
            self._visit_node(node)


def analyze_module(parsed: ParsedScript) -> ModuleInterface:
    """Build scopes and resolve references for one parsed module."""
    return BindingAnalyzer().analyze(parsed.tree)
