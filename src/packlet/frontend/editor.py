"""
Source editor

Regenerates module text from the original source plus a set of span edits.
Rewrite rules never print trees: they record replacements, removals and
insertions against node spans, and the editor splices them into the source,
leaving every untouched byte (comments, formatting) as written.
"""

from dataclasses import dataclass
from typing import List, Tuple, Union

from lark import Token, Tree

from ..shared.errors import PackletImplementationError


Node = Union[Tree, Token]


def span(node: Node) -> Tuple[int, int]:
    """Source offsets [start, end) covered by a tree or token."""
    if isinstance(node, Token):
        return node.start_pos, node.end_pos
    meta = node.meta
    if meta.empty:
        raise PackletImplementationError(f"node '{node.data}' has no source position")
    return meta.start_pos, meta.end_pos


@dataclass(frozen=True)
class SourceEdit:
    start: int
    end: int
    text: str
    seq: int

    @property
    def is_insertion(self) -> bool:
        return self.start == self.end


class SourceEditor:
    """
    Collects edits against one source text and applies them in one pass.

    Insertions at the same offset keep the order they were recorded in.
    Replacements may not overlap each other.
    """

    def __init__(self, source: str):
        self.source = source
        self.edits: List[SourceEdit] = []

    def replace(self, start: int, end: int, text: str) -> None:
        if not 0 <= start <= end <= len(self.source):
            raise PackletImplementationError(f"edit span {start}:{end} outside source")
        self.edits.append(SourceEdit(start, end, text, len(self.edits)))

    def replace_node(self, node: Node, text: str) -> None:
        self.replace(*span(node), text)

    def remove(self, start: int, end: int) -> None:
        self.replace(start, end, "")

    def insert(self, offset: int, text: str) -> None:
        self.replace(offset, offset, text)

    def insert_after(self, node: Node, text: str) -> None:
        self.insert(span(node)[1], text)

    def apply(self) -> str:
        ordered = sorted(self.edits, key=lambda e: (e.start, 0 if e.is_insertion else 1, e.seq))
        out: List[str] = []
        cursor = 0
        for edit in ordered:
            if edit.start < cursor:
                raise PackletImplementationError(
                    f"overlapping edits at offset {edit.start} (previous edit ends at {cursor})"
                )
            out.append(self.source[cursor:edit.start])
            out.append(edit.text)
            cursor = edit.end
        out.append(self.source[cursor:])
        return "".join(out)
