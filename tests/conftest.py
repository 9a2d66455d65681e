"""
Pytest configuration and shared fixtures for all packlet tests.

The parser is session-scoped: the LALR tables are built once and the parser
holds no per-parse state.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from packlet.frontend.parser import Parser
from packlet.analysis.module_system import KindRegistry, ModuleLoader, PathResolver


# =============================================================================
# Session-scoped fixtures
# =============================================================================

@pytest.fixture(scope="session")
def parser():
    """Shared JavaScript parser."""
    return Parser()


# =============================================================================
# Function-scoped fixtures
# =============================================================================

@pytest.fixture
def resolver():
    return PathResolver()


@pytest.fixture
def loader(parser, resolver):
    """Fresh graph builder (and module cache) per test."""
    return ModuleLoader(KindRegistry.with_default_kinds(parser), resolver)


@pytest.fixture
def project(tmp_path):
    """
    Writes a file tree under tmp_path.

        root = project({"src/a.js": "...", "src/b.js": "..."})
    """
    from tests.test_utils import write_tree

    def _project(files):
        return write_tree(tmp_path, files)

    return _project


def pytest_configure(config):
    """Register custom markers for test organization."""
    config.addinivalue_line(
        "markers", "node: runs generated bundles with node (skipped when node is missing)"
    )
