"""
Runtime

Pattern: module map + caching require, wrapped in one IIFE

The emitted script is a single function call. Its argument is the module
map (canonical path -> factory taking `(exports, require)`); its body is the
loader. `require` registers a module's exports object in the cache before
running the factory, so a module re-entered through an import cycle gets
the partially filled object instead of running twice.
"""

import json
from typing import Iterable, Tuple

from ..utils.config import EXPORTS_NAME, REQUIRE_NAME

RUNTIME_PREAMBLE = """\
(function (modules) {
  var moduleCache = Object.create(null);
  function require(path) {
    if (path in moduleCache) {
      return moduleCache[path];
    }
    if (!Object.prototype.hasOwnProperty.call(modules, path)) {
      throw new Error("Cannot find module '" + path + "'");
    }
    var exports = {};
    moduleCache[path] = exports;
    modules[path](exports, require);
    return exports;
  }
  require(%s);
})({
"""

RUNTIME_EPILOGUE = "});\n"


def render_factory(key: str, body: str) -> str:
    """One module-map entry. Bodies are embedded as-is (no re-indentation)."""
    return (
        f"{json.dumps(key)}: function ({EXPORTS_NAME}, {REQUIRE_NAME}) {{\n"
        f"{body}\n"
        f"}},\n"
    )


def render_bundle(entry_key: str, factories: Iterable[Tuple[str, str]]) -> str:
    """Full bundle text: loader, then every (key, body) pair, entry first."""
    parts = [RUNTIME_PREAMBLE % json.dumps(entry_key)]
    parts.extend(render_factory(key, body) for key, body in factories)
    parts.append(RUNTIME_EPILOGUE)
    return "".join(parts)
