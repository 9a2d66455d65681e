"""
Bundler

Turns the module graph rooted at the entry into artifacts.

1. Depth-first walk with a visited set: each reachable module once, root first
2. Each module transformed into a factory body
3. Module map + loader runtime rendered as one script
"""

import logging
from dataclasses import dataclass
from typing import List, Set

from ..analysis.module_system import Module
from ..runtime import render_bundle
from ..utils.config import DEFAULT_BUNDLE_NAME

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Artifact:
    """One output file: name relative to the output folder, and its text."""
    name: str
    content: str


def collect_modules(root: Module) -> List[Module]:
    """Every module reachable from `root`, each once, in depth-first preorder."""
    ordered: List[Module] = []
    visited: Set[str] = set()
    stack = [root]
    while stack:
        module = stack.pop()
        if module.key in visited:
            continue
        visited.add(module.key)
        ordered.append(module)
        # reversed so dependencies are visited in source order
        stack.extend(reversed(module.dependencies))
    return ordered


def bundle(root: Module, bundle_name: str = DEFAULT_BUNDLE_NAME) -> List[Artifact]:
    """Script artifact for the graph rooted at `root`."""
    modules = collect_modules(root)
    content = render_bundle(root.key, ((m.key, m.transformed_content) for m in modules))
    logger.debug(f"bundled {len(modules)} modules into {bundle_name} ({len(content)} chars)")
    return [Artifact(bundle_name, content)]
