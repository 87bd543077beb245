# Solr CoreAdmin calls: find the template core on disk and register new cores.

import xml.etree.ElementTree as ET
from .errors import EngineUnreachable, RegistrationFailed, TemplateNotFound
from .logs import get_logger
from .models import TEMPLATE_CORE_NAME, EngineEndpoint, ProvisionedCore, TemplateCore
from .transport import HttpClient

logger = get_logger()

INSTANCE_DIR_XPATH = f"lst[@name='status']/lst[@name='{TEMPLATE_CORE_NAME}']/str[@name='instanceDir']"


def _excerpt(body: str, n: int = 300) -> str:
    body = " ".join(body.split())
    return body if len(body) <= n else body[:n] + "..."


class SolrAdminClient:
    def __init__(self, endpoint: EngineEndpoint, http: HttpClient):
        self.endpoint = endpoint
        self.http = http

    def locate_template(self) -> TemplateCore:
        """instanceDir of collection1 from the STATUS listing.

        Transport problems propagate as EngineUnreachable.
        """
        url = self.endpoint.cores_url
        body = self.http.get(url, params={"wt": "xml"})  # Solr 7+ answers JSON unless asked
        try:
            root = ET.fromstring(body)
        except ET.ParseError as e:
            raise TemplateNotFound(f"{TEMPLATE_CORE_NAME} not found: {url} did not return XML ({e}): {_excerpt(body)}") from e
        node = root.find(INSTANCE_DIR_XPATH) if root.tag == "response" else None
        if node is None or not (node.text or "").strip():
            raise TemplateNotFound(f"{TEMPLATE_CORE_NAME} not found in core listing from {url}: {_excerpt(body)}")
        path = node.text.strip()
        logger.info("solr_cores.template.located", extra={"url": url, "path": path})
        return TemplateCore(path=path)

    def create_core(self, core: ProvisionedCore) -> str:
        params = {
            "action": "CREATE",
            "name": core.core_name,
            "instanceDir": core.path,
            "config": "solrconfig.xml",
            "schema": "schema.xml",
            "dataDir": "data",
        }
        try:
            body = self.http.get(self.endpoint.cores_url, params=params)
        except EngineUnreachable as e:
            raise RegistrationFailed(f"CREATE of core '{core.core_name}' at {core.path} failed: {e}",
                                     status=e.status) from e
        logger.info("solr_cores.core.created", extra={"core": core.core_name, "instance_dir": core.path})
        return body
