import os
import xml.etree.ElementTree as ET
from . import xml_merge
from .errors import FileWriteFailed, MergeConflict
from .logs import get_logger
from .models import CoreState, ProvisionedCore
from .transport import FileSystem

logger = get_logger()

SOLR_CONFIG = "solrconfig.xml"

# Turns on the terms component for /select so the application can pull
# facet-like term lists from every core.
SOLR_CONFIG_PATCH = """<config>
  <requestHandler name="/select" class="solr.SearchHandler">
    <bool name="terms">true</bool>
    <lst name="defaults">
      <bool name="terms">true</bool>
    </lst>
    <arr name="last-components">
      <str>terms</str>
    </arr>
  </requestHandler>
</config>"""


def patch_text(source, patch: str = SOLR_CONFIG_PATCH) -> str:
    """Merge `patch` into the solrconfig document `source` (text or bytes) and normalize."""
    try:
        doc = xml_merge.parse(source)
    except ET.ParseError as e:
        raise MergeConflict(f"solrconfig is not well-formed XML: {e}") from e
    xml_merge.merge(doc, xml_merge.parse(patch))
    return xml_merge.normalize(doc)


class ConfigPatcher:
    def __init__(self, fs: FileSystem, patch: str = SOLR_CONFIG_PATCH):
        self.fs = fs
        self.patch = patch

    def patch_core(self, core: ProvisionedCore) -> ProvisionedCore:
        path = os.path.join(core.path, "conf", SOLR_CONFIG)
        try:
            source = self.fs.read_bytes(path)
        except OSError as e:
            raise MergeConflict(f"cannot read {path}: {e}") from e
        try:
            text = patch_text(source, self.patch)
        except MergeConflict as e:
            raise MergeConflict(f"{path}: {e}") from e
        try:
            self.fs.write_text(path, text)
        except OSError as e:
            raise FileWriteFailed(f"cannot write {path}: {e}") from e
        core.state = CoreState.CONFIG_PATCHED
        logger.info("solr_cores.config.patched", extra={"core": core.core_name, "path": path})
        return core
