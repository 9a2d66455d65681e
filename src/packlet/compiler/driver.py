"""
Build Driver

Pattern: driver orchestrating load → transform → emit → write

Every artifact is produced in memory before the first file is written, so a
failing build leaves the output folder untouched.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .bundler import Artifact, bundle
from .context import BuildContext, BuildOptions
from ..utils.config import BODY_CLOSE_TAG, SCRIPT_TAG_TEMPLATE
from ..utils.io_utils import read_source_file, write_output_file

logger = logging.getLogger(__name__)

PathLike = Union[Path, str]


def inject_script_tags(template: str, script_names: Sequence[str]) -> str:
    """Insert one <script> tag per script before the last </body> (or at the end)."""
    tags = "".join(SCRIPT_TAG_TEMPLATE.format(name=name) for name in script_names)
    close = template.lower().rfind(BODY_CLOSE_TAG)
    if close == -1:
        return template + tags
    return template[:close] + tags + template[close:]


class BundleDriver:
    """
    Runs one build.

    - Loads the graph from the entry file (BuildContext.loader)
    - Bundles it into artifacts
    - Optionally derives an HTML page from a template
    - Writes everything to the output folder
    """

    def __init__(self, options: Optional[BuildOptions] = None):
        self.options = options if options is not None else BuildOptions()

    def compile(self, entry_file: PathLike, html_template: Optional[PathLike] = None) -> List[Artifact]:
        """Produce the artifacts without writing them."""
        context = BuildContext(self.options)
        root = context.loader.get_or_load(entry_file)
        artifacts = bundle(root, self.options.bundle_name)
        if html_template is not None:
            template = read_source_file(html_template)
            scripts = [a.name for a in artifacts if a.name.endswith(".js")]
            artifacts.append(Artifact(Path(html_template).name, inject_script_tags(template, scripts)))
        logger.debug(f"{len(context.cache)} modules loaded from {root.path}")
        return artifacts

    def build(self, entry_file: PathLike, output_folder: PathLike,
              html_template: Optional[PathLike] = None) -> List[Artifact]:
        artifacts = self.compile(entry_file, html_template)
        output = Path(output_folder)
        for artifact in artifacts:
            write_output_file(output / artifact.name, artifact.content)
        logger.info(f"built {entry_file} -> {output} ({', '.join(a.name for a in artifacts)})")
        return artifacts


def build(entry_file: PathLike, output_folder: PathLike, html_template: Optional[PathLike] = None,
          options: Optional[BuildOptions] = None) -> List[Artifact]:
    """Bundle `entry_file` and everything it imports into `output_folder`."""
    return BundleDriver(options).build(entry_file, output_folder, html_template)
