# Reads the Solr base address and the Solr-backed index definitions out of the
# target application's merged ("showconfig") configuration.

import xml.etree.ElementTree as ET
from typing import List, Union
from .errors import ConfigurationMissing
from .models import EngineEndpoint, IndexDescriptor

ROOT_TAG = "sitecore"
BASE_ADDRESS_SETTING = "ContentSearch.Solr.ServiceBaseAddress"
SOLR_INDEX_TYPE = "Sitecore.ContentSearch.SolrProvider.SolrSearchIndex, Sitecore.ContentSearch.SolrProvider"

SETTING_XPATH = f"settings/setting[@name='{BASE_ADDRESS_SETTING}']"
INDEX_XPATH = f"contentSearch/configuration/indexes/index[@type='{SOLR_INDEX_TYPE}']"
CORE_PARAM_XPATH = "param[@desc='core']"

Config = Union[str, bytes, ET.Element]


def _root(config: Config) -> ET.Element:
    if isinstance(config, ET.Element):
        root = config
    else:
        try:
            root = ET.fromstring(config)
        except ET.ParseError as e:
            raise ConfigurationMissing(f"configuration is not well-formed XML: {e}") from e
    if root.tag != ROOT_TAG:
        raise ConfigurationMissing(f"configuration root is <{root.tag}>, expected <{ROOT_TAG}>")
    return root


def read_engine_endpoint(config: Config) -> EngineEndpoint:
    node = _root(config).find(SETTING_XPATH)
    if node is None:
        raise ConfigurationMissing(f"{BASE_ADDRESS_SETTING} not found in configuration.")
    value = node.get("value")
    if value is None:
        raise ConfigurationMissing(f"{BASE_ADDRESS_SETTING} value attribute not found.")
    try:
        return EngineEndpoint(base_url=value)
    except ValueError as e:
        raise ConfigurationMissing(f"{BASE_ADDRESS_SETTING} has an empty value.") from e


def read_index_descriptors(config: Config) -> List[IndexDescriptor]:
    """Solr indexes in declaration order; indexes of any other provider are skipped."""
    out: List[IndexDescriptor] = []
    for node in _root(config).findall(INDEX_XPATH):
        index_id = node.get("id")
        if not index_id:
            raise ConfigurationMissing(f"Solr index definition without an id attribute ({SOLR_INDEX_TYPE})")
        core = node.find(CORE_PARAM_XPATH)
        if core is None:
            raise ConfigurationMissing(f"{CORE_PARAM_XPATH} not found for index '{index_id}' in Solr configuration")
        out.append(IndexDescriptor(id=index_id, core_template=(core.text or "").strip()))
    return out
