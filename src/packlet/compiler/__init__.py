"""Build orchestration: context, bundler, driver."""

from .bundler import Artifact, bundle, collect_modules
from .context import BuildContext, BuildOptions
from .driver import BundleDriver, build, inject_script_tags

__all__ = [
    'Artifact',
    'bundle',
    'collect_modules',
    'BuildContext',
    'BuildOptions',
    'BundleDriver',
    'build',
    'inject_script_tags',
]
