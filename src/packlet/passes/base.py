"""
Base Rewrite System

Pattern: ordered rule set over one parsed module, text regenerated by span edits

A rule looks at the parse tree and the module's binding analysis and records
edits in a shared SourceEditor. Rules never see each other's output; the
text is produced once, after every rule has run. Statements that must run
before the module body (require bindings, hoisted export assignments) go to
named prologue sections instead of edits.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set

from lark import Tree

from ..analysis.bindings import ModuleInterface, analyze_module
from ..frontend.editor import SourceEditor
from ..frontend.parser import ParsedScript, parse
from ..utils.config import EXPORTS_NAME, FALLBACK_NAMESPACE, NAMESPACE_PREFIX, REQUIRE_NAME

logger = logging.getLogger(__name__)

_IDENTIFIER_NAME = re.compile(r'^[A-Za-z_$][\w$]*$')

# Prologue sections, in the order they are emitted
HOISTED = "hoisted"
REQUIRES = "requires"
REEXPORTS = "reexports"
PROLOGUE_SECTIONS = (HOISTED, REQUIRES, REEXPORTS)

STRICT_DIRECTIVE = '"use strict";'


def property_access(obj: str, name: str) -> str:
    """`obj.name`, or `obj["name"]` when name is not an identifier name."""
    if _IDENTIFIER_NAME.match(name):
        return f"{obj}.{name}"
    return f"{obj}[{json.dumps(name)}]"


def exports_assignment(name: str, value: str) -> str:
    return f"{property_access(EXPORTS_NAME, name)} = {value};"


def require_call(key: str) -> str:
    return f"{REQUIRE_NAME}({json.dumps(key)})"


def namespace_base(key: str) -> str:
    """Readable variable name for a module: `/src/my-lib.js` -> `_my_lib`."""
    stem = key.rsplit("/", 1)[-1].split(".", 1)[0]
    stem = re.sub(r'[^\w$]', '_', stem)
    if not stem:
        return FALLBACK_NAMESPACE
    return NAMESPACE_PREFIX + stem


class RewriteContext:
    """
    Per-module state shared by the rules of one transform.

    - module_key: the module's own key in the runtime module map
    - key_for: specifier -> resolved module-map key
    - prologue: statements emitted ahead of the body, by section
    - namespaces: module-map key -> variable holding that module's exports
    """

    def __init__(self, module_key: str, key_for: Callable[[str], str]):
        self.module_key = module_key
        self.key_for = key_for
        self.prologue: Dict[str, List[str]] = {section: [] for section in PROLOGUE_SECTIONS}
        self.namespaces: Dict[str, str] = {}
        self.taken_names: Set[str] = set()

    def reserve_names(self, names: Iterable[str]) -> None:
        self.taken_names.update(names)

    def fresh_name(self, base: str) -> str:
        name, n = base, 1
        while name in self.taken_names:
            n += 1
            name = f"{base}{n}"
        self.taken_names.add(name)
        return name

    def namespace_for(self, specifier: str) -> str:
        """Variable bound to the exports of `specifier`'s module, created on first use."""
        key = self.key_for(specifier)
        name = self.namespaces.get(key)
        if name is None:
            name = self.fresh_name(namespace_base(key))
            self.namespaces[key] = name
            self.emit(REQUIRES, f"const {name} = {require_call(key)};")
        return name

    def emit(self, section: str, statement: str) -> None:
        self.prologue[section].append(statement)

    def prologue_text(self) -> str:
        lines = [STRICT_DIRECTIVE]
        for section in PROLOGUE_SECTIONS:
            lines.extend(self.prologue[section])
        return "\n".join(lines) + "\n"


@dataclass
class RewriteResult:
    """Regenerated module text; the tree is re-parsed on demand."""
    text: str
    source_file: str = "<transformed>"
    _tree: Optional[Tree] = field(default=None, repr=False)

    @property
    def tree(self) -> Tree:
        if self._tree is None:
            self._tree = parse(self.text, self.source_file).tree
        return self._tree


class RewriteRule(ABC):
    """One independently testable module-interface rewrite."""

    name: str = ""

    @abstractmethod
    def apply(self, script: ParsedScript, interface: ModuleInterface,
              editor: SourceEditor, context: RewriteContext) -> None:
        raise NotImplementedError


class RuleSet:
    """Ordered collection of rewrite rules."""

    def __init__(self, rules: Iterable[RewriteRule]):
        self.rules: List[RewriteRule] = list(rules)

    def __iter__(self) -> Iterator[RewriteRule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)


def top_level_items(script: ParsedScript, *kinds: str) -> Iterator[Tree]:
    for item in script.tree.children:
        if isinstance(item, Tree) and item.data in kinds:
            yield item


def statement_terminator(script: ParsedScript, node: Tree) -> str:
    """'' when the statement text ends with ';', else ';' (it was ended by ASI)."""
    end = node.meta.end_pos
    return "" if script.source[end - 1:end] == ";" else ";"


def transform_tree(script: ParsedScript, rules: Iterable[RewriteRule], context: RewriteContext) -> RewriteResult:
    """Apply `rules` to one parsed module and regenerate its text."""
    interface = analyze_module(script)
    context.reserve_names(t.value for t in script.tokens.tokens if t.type == 'IDENT')
    editor = SourceEditor(script.source)
    for rule in rules:
        rule.apply(script, interface, editor, context)
        logger.debug(f"{context.module_key}: applied {rule.name}")
    start = script.hashbang_end
    if start:
        editor.remove(0, start)
    editor.insert(start, context.prologue_text())
    return RewriteResult(editor.apply(), context.module_key)
