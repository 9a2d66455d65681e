"""
Configuration constants to replace magic values throughout packlet
"""

# Output artifacts
DEFAULT_BUNDLE_NAME = "bundle.js"
SCRIPT_TAG_TEMPLATE = '<script src="/{name}"></script>'
BODY_CLOSE_TAG = "</body>"

# File encoding constants
DEFAULT_FILE_ENCODING = "utf-8"

# Module resolution constants
DEPENDENCY_DIRECTORY = "node_modules"
PACKAGE_MANIFEST = "package.json"
PACKAGE_ENTRY_FIELDS = ("module", "main")
INDEX_FILE_NAME = "index.js"
PROBE_EXTENSIONS = (".js", ".mjs", ".json", ".css")
RELATIVE_PREFIXES = ("./", "../", "/")

# Module kinds (extension -> kind name)
SCRIPT_EXTENSIONS = (".js", ".mjs")
STYLESHEET_EXTENSIONS = (".css",)
JSON_EXTENSIONS = (".json",)

# Generated names inside module bodies
EXPORTS_NAME = "exports"
REQUIRE_NAME = "require"
NAMESPACE_PREFIX = "_"
FALLBACK_NAMESPACE = "_module"
DEFAULT_FUNCTION_NAME = "_default"
