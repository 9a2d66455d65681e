"""
Import Rewrite

    import def, { a, b as c } from "./x.js";   →  const _x = require("/abs/x.js");
    import * as ns from "./y.js";              →  const ns = require("/abs/y.js");
    import "./z.css";                          →  require("/abs/z.css");

Declarations are removed from the body and the require bindings hoisted to
the prologue, in source order. Every use of a default or named import is
rewritten to a property read on the module's exports object, so later
assignments to that object (including ones made while a cycle is still
unwinding) are observed.
"""

import logging

from lark import Tree

from .base import REQUIRES, RewriteContext, RewriteRule, property_access, require_call, top_level_items
from ..analysis.bindings import ModuleInterface, Reference, specifier_of
from ..frontend.editor import SourceEditor
from ..frontend.parser import ParsedScript

logger = logging.getLogger(__name__)

_REQUEST_DECLARATIONS = ('import_declaration', 'export_all_declaration', 'export_named_declaration')


class ImportRewriteRule(RewriteRule):
    name = "import-rewrite"

    def apply(self, script: ParsedScript, interface: ModuleInterface,
              editor: SourceEditor, context: RewriteContext) -> None:
        required = set()
        for item in top_level_items(script, *_REQUEST_DECLARATIONS):
            specifier = specifier_of(item)
            if specifier is None:
                continue
            if item.data != 'import_declaration':
                # export ... from: bound here so it keeps its place in source order
                context.namespace_for(specifier)
                continue
            self._bind_import(item, specifier, context, required)
            editor.replace_node(item, "")

        rewritten = 0
        for ref in interface.import_references():
            source = ref.binding.source
            if source.imported == '*':
                continue
            editor.replace_node(ref.node, self._use_site(ref, context.namespace_for(source.specifier), source.imported))
            rewritten += 1
        logger.debug(f"{context.module_key}: {rewritten} import use sites rewritten")

    def _bind_import(self, declaration: Tree, specifier: str, context: RewriteContext, required: set) -> None:
        key = context.key_for(specifier)
        clauses = [c for c in declaration.children if isinstance(c, Tree) and c.data != 'module_specifier']
        if not clauses:
            if key not in required and key not in context.namespaces:
                context.emit(REQUIRES, f"{require_call(key)};")
            required.add(key)
            return
        for clause in clauses:
            if clause.data == 'namespace_import':
                local = clause.children[-1].children[0].value
                context.emit(REQUIRES, f"const {local} = {require_call(key)};")
            else:
                context.namespace_for(specifier)
        required.add(key)

    @staticmethod
    def _use_site(ref: Reference, namespace: str, imported: str) -> str:
        access = property_access(namespace, imported)
        if ref.is_shorthand:
            return f"{ref.name}: {access}"
        if ref.is_callee:
            return f"(0, {access})"
        return access
