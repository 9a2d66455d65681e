"""
Export Rewrite

Default exports:

    export default expr;             →  exports.default = expr;
    export default function f() {}   →  function f() {}      (+ hoisted exports.default = f;)
    export default function () {}    →  function _default() {}  (+ hoisted exports.default = _default;)
    export default class C {}        →  class C {} exports.default = C;

Named exports:

    export const a = 1, { b } = o;   →  const a = 1, { b } = o; exports.a = a; exports.b = b;
    export function f() {}           →  function f() {}      (+ hoisted exports.f = f;)
    export class C {}                →  class C {} exports.C = C;
    export { a, b as c };            →  exports.a = a; exports.c = b;

An exported import binding is re-exported with a getter, like the `from`
forms below.

Re-exports read through the required module with getters, so the value is
looked up on every access:

    export { a as b } from "./x.js";
    export * from "./x.js";
    export * as ns from "./x.js";
"""

import json
import logging
from typing import Dict, List, Optional

from lark import Token, Tree

from .base import (
    HOISTED,
    REEXPORTS,
    RewriteContext,
    RewriteRule,
    exports_assignment,
    property_access,
    statement_terminator,
    top_level_items,
)
from ..analysis.bindings import (
    ModuleInterface,
    bound_names,
    export_name,
    first_subtree,
    specifier_of,
    subtrees,
)
from ..frontend.editor import SourceEditor, span
from ..frontend.parser import ParsedScript
from ..shared.scope import Binding, BindingType
from ..utils.config import DEFAULT_FUNCTION_NAME, EXPORTS_NAME

logger = logging.getLogger(__name__)


def _strip_export_prefix(editor: SourceEditor, item: Tree, declaration: Tree) -> None:
    """Remove `export ` (or `export default `) in front of a kept declaration."""
    editor.remove(item.meta.start_pos, declaration.meta.start_pos)


class DefaultExportRule(RewriteRule):
    name = "default-export-rewrite"

    def apply(self, script: ParsedScript, interface: ModuleInterface,
              editor: SourceEditor, context: RewriteContext) -> None:
        for item in top_level_items(script, 'export_default_declaration'):
            value = item.children[-1]
            name = first_subtree(value, 'binding_identifier') if isinstance(value, Tree) else None
            is_declaration = isinstance(value, Tree) and value.data in ('default_function', 'default_class')

            if is_declaration and name is not None:
                _strip_export_prefix(editor, item, value)
                assignment = exports_assignment('default', name.children[0].value)
                if value.data == 'default_function':
                    context.emit(HOISTED, assignment)
                else:
                    editor.insert(item.meta.end_pos, " " + assignment)
                continue

            if is_declaration and value.data == 'default_function':
                self._name_anonymous_function(script, editor, context, item, value)
                continue

            start, _ = span(value)
            editor.replace(item.meta.start_pos, start, f"{EXPORTS_NAME}.default = ")
            if is_declaration:
                editor.insert(item.meta.end_pos, ";")
            else:
                editor.insert(item.meta.end_pos, statement_terminator(script, item))

    @staticmethod
    def _name_anonymous_function(script: ParsedScript, editor: SourceEditor,
                                 context: RewriteContext, item: Tree, value: Tree) -> None:
        """Give `export default function () {}` a generated name so it hoists like a named one."""
        name = context.fresh_name(DEFAULT_FUNCTION_NAME)
        _strip_export_prefix(editor, item, value)
        params_start, _ = span(first_subtree(value, 'formal_parameters'))
        gap = "" if script.source[params_start - 1].isspace() else " "
        editor.insert(params_start, gap + name)
        context.emit(HOISTED, exports_assignment('default', name))


class NamedExportRule(RewriteRule):
    name = "named-export-rewrite"

    def apply(self, script: ParsedScript, interface: ModuleInterface,
              editor: SourceEditor, context: RewriteContext) -> None:
        explicit = self.explicit_names(script)
        for item in top_level_items(script, 'export_named_declaration', 'export_all_declaration'):
            specifier = specifier_of(item)
            if item.data == 'export_all_declaration':
                self._export_all(item, specifier, explicit, context)
                editor.replace_node(item, "")
            elif specifier is not None:
                self._reexport(item, specifier, context)
                editor.replace_node(item, "")
            else:
                self._export_local(script, item, interface, editor, context)

    @staticmethod
    def explicit_names(script: ParsedScript) -> List[str]:
        """Every name this module exports by name (star re-exports excluded)."""
        names: List[str] = []
        for item in top_level_items(script, 'export_named_declaration', 'export_all_declaration',
                                    'export_default_declaration'):
            if item.data == 'export_default_declaration':
                names.append('default')
            elif item.data == 'export_all_declaration':
                if any(isinstance(c, Token) and c.type == 'AS' for c in item.children):
                    names.append(export_name(item.children[2]))
            else:
                clause = first_subtree(item, 'export_clause')
                if clause is not None:
                    names.extend(export_name(spec.children[-1]) for spec in subtrees(clause))
                else:
                    names.extend(_declared_names(item.children[1]))
        return names

    # -- local exports --------------------------------------------------------

    def _export_local(self, script: ParsedScript, item: Tree, interface: ModuleInterface,
                      editor: SourceEditor, context: RewriteContext) -> None:
        declaration = item.children[1]
        if declaration.data == 'export_clause':
            self._export_clause(script, item, declaration, interface, editor, context)
            return

        _strip_export_prefix(editor, item, declaration)
        assignments = [exports_assignment(n, n) for n in _declared_names(declaration)]
        if declaration.data == 'function_declaration':
            for assignment in assignments:
                context.emit(HOISTED, assignment)
            return
        terminator = statement_terminator(script, declaration) if declaration.data == 'variable_declaration' else ""
        editor.insert(declaration.meta.end_pos, terminator + " " + " ".join(assignments))

    def _export_clause(self, script: ParsedScript, item: Tree, clause: Tree, interface: ModuleInterface,
                       editor: SourceEditor, context: RewriteContext) -> None:
        in_place: List[str] = []
        deferred: Dict[int, List[str]] = {}
        for spec in subtrees(clause, 'export_specifier'):
            local = export_name(spec.children[0])
            exported = export_name(spec.children[-1])
            binding = interface.lookup(local)
            if binding is not None and binding.is_import:
                if binding.source.imported == '*':
                    value = local
                else:
                    value = property_access(context.namespace_for(binding.source.specifier),
                                            binding.source.imported)
                context.emit(REEXPORTS, _getter(exported, value))
                continue
            assignment = exports_assignment(exported, local)
            if binding is not None and binding.binding_type is BindingType.FUNCTION:
                context.emit(HOISTED, assignment)
                continue
            declared_in = _declaring_item(script, binding)
            if declared_in is not None and declared_in.meta.start_pos > item.meta.start_pos:
                # declared below the clause; assign once the declaration has run
                deferred.setdefault(declared_in.meta.end_pos,
                                    [statement_terminator(script, declared_in)]).append(assignment)
            else:
                in_place.append(assignment)

        editor.replace_node(item, " ".join(in_place))
        for offset, (terminator, *assignments) in sorted(deferred.items()):
            editor.insert(offset, terminator + " " + " ".join(assignments))

    # -- re-exports -----------------------------------------------------------

    def _reexport(self, item: Tree, specifier: str, context: RewriteContext) -> None:
        namespace = context.namespace_for(specifier)
        clause = first_subtree(item, 'export_clause')
        for spec in subtrees(clause, 'export_specifier'):
            imported = export_name(spec.children[0])
            exported = export_name(spec.children[-1])
            context.emit(REEXPORTS, _getter(exported, property_access(namespace, imported)))

    def _export_all(self, item: Tree, specifier: str, explicit: List[str], context: RewriteContext) -> None:
        namespace = context.namespace_for(specifier)
        if any(isinstance(c, Token) and c.type == 'AS' for c in item.children):
            context.emit(REEXPORTS, exports_assignment(export_name(item.children[2]), namespace))
            return
        skip = json.dumps(sorted(set(explicit) | {'default'}))
        context.emit(REEXPORTS, (
            f"Object.keys({namespace}).forEach(function (key) {{\n"
            f"  if ({skip}.indexOf(key) !== -1 || Object.prototype.hasOwnProperty.call({EXPORTS_NAME}, key)) return;\n"
            f"  Object.defineProperty({EXPORTS_NAME}, key, {{ enumerable: true, get: function () {{ return {namespace}[key]; }} }});\n"
            f"}});"
        ))


def _getter(exported: str, value: str) -> str:
    return (f"Object.defineProperty({EXPORTS_NAME}, {json.dumps(exported)}, "
            f"{{ enumerable: true, get: function () {{ return {value}; }} }});")


def _declared_names(declaration: Tree) -> List[str]:
    """Names bound at module level by an exported declaration."""
    if declaration.data == 'variable_declaration':
        return [t.value for d in subtrees(declaration, 'variable_declarator') for t in bound_names(d)]
    name = first_subtree(declaration, 'binding_identifier')
    return [name.children[0].value] if name is not None else []


def _declaring_item(script: ParsedScript, binding: Optional[Binding]) -> Optional[Tree]:
    """Top-level statement that contains a module-scope binding's declaration."""
    if binding is None or binding.scope.parent is not None:
        return None
    start, _ = span(binding.definition)
    for item in script.tree.children:
        if isinstance(item, Tree) and item.meta.start_pos <= start < item.meta.end_pos:
            return item
    return None
