# Creates one Solr core per configured Solr index, copying collection1.
#
# Per index: copy -> schema -> solrconfig -> CREATE. The first failure stops
# the whole run; cores registered before it stay registered.

import os, sys
from typing import List, Optional, Protocol
from .config_patch import ConfigPatcher
from .descriptors import Config, read_engine_endpoint, read_index_descriptors
from .engine import SolrAdminClient
from .errors import ConfigurationMissing, ProvisioningError
from .logs import get_logger
from .models import CoreState, ExistingCorePolicy, ProvisionedCore
from .replicator import CoreReplicator
from .schema import LibrarySchemaGenerator, SchemaAdapter, SchemaGenerator
from .settings import ProvisionerSettings
from .transport import FileSystem, HttpClient, LocalFileSystem, RequestsHttpClient, wait_for_engine

logger = get_logger()


class TargetInstance(Protocol):
    web_root_path: str

    def get_showconfig(self) -> Config: ...


class CoreProvisioner:
    def __init__(self, fs: FileSystem, http: HttpClient, schema_generator: SchemaGenerator,
                 existing_core: ExistingCorePolicy = ExistingCorePolicy.FAIL, wait_sec: float = 0.0):
        self.fs = fs
        self.http = http
        self.replicator = CoreReplicator(fs, existing_core)
        self.schema = SchemaAdapter(fs, schema_generator)
        self.patcher = ConfigPatcher(fs)
        self.wait_sec = wait_sec

    def run(self, config: Config) -> List[ProvisionedCore]:
        endpoint = read_engine_endpoint(config)
        descriptors = read_index_descriptors(config)
        logger.info("solr_cores.run.start", extra={"solr": endpoint.base_url, "indexes": [d.id for d in descriptors]})
        if not descriptors:
            return []

        wait_for_engine(self.http, endpoint.cores_url, self.wait_sec)
        admin = SolrAdminClient(endpoint, self.http)
        template = admin.locate_template()

        done: List[ProvisionedCore] = []
        for d in descriptors:
            core: Optional[ProvisionedCore] = None
            try:
                core = self.replicator.replicate(template, d.core_name)
                self.schema.update_schema(core)
                self.patcher.patch_core(core)
                admin.create_core(core)
                core.state = CoreState.REGISTERED
            except Exception as e:
                if core is not None:
                    core.state = CoreState.FAILED
                logger.error("solr_cores.core.failed", extra={
                    "index": d.id, "core": d.core_name, "error": type(e).__name__, "detail": str(e),
                    "registered": [c.core_name for c in done],
                })
                raise
            done.append(core)
        logger.info("solr_cores.run.done", extra={"cores": [c.core_name for c in done]})
        return done


class CreateSolrCores:
    """Pipeline step: creates cores for all configured Solr indexes."""

    def __init__(self, settings: ProvisionerSettings | None = None,
                 fs: FileSystem | None = None, http: HttpClient | None = None,
                 schema_generator: SchemaGenerator | None = None):
        self.settings = settings or ProvisionerSettings.from_env()
        self.fs = fs or LocalFileSystem()
        self.http = http or RequestsHttpClient(timeout=self.settings.timeout_sec)
        self.schema_generator = schema_generator

    def execute(self, instance: TargetInstance, module=None) -> List[ProvisionedCore]:
        s = self.settings
        generator = self.schema_generator or LibrarySchemaGenerator(
            instance.web_root_path, s.schema_library, s.schema_class, s.schema_method)
        logger.info("solr_cores.step.execute", extra={"web_root": instance.web_root_path, "product": str(module) if module else None})
        provisioner = CoreProvisioner(self.fs, self.http, generator, s.existing_core, s.wait_sec)
        return provisioner.run(instance.get_showconfig())


class FileInstance:
    """Target instance backed by a showconfig dump on disk."""

    def __init__(self, web_root_path: str, showconfig_path: str):
        self.web_root_path = web_root_path
        self.showconfig_path = showconfig_path

    def get_showconfig(self) -> bytes:
        try:
            with open(self.showconfig_path, "rb") as f:
                return f.read()
        except OSError as e:
            raise ConfigurationMissing(f"cannot read showconfig dump {self.showconfig_path}: {e}") from e


def main() -> int:
    settings = ProvisionerSettings.from_env()
    get_logger(settings.log_level)
    showconfig = os.getenv("SHOWCONFIG_PATH", "")
    web_root = os.getenv("WEB_ROOT", "")
    if not showconfig or not web_root:
        logger.error("solr_cores.main.missing_env", extra={"required": ["SHOWCONFIG_PATH", "WEB_ROOT"]})
        return 2
    try:
        cores = CreateSolrCores(settings).execute(FileInstance(web_root, showconfig))
    except ProvisioningError as e:
        logger.error("solr_cores.main.failed", extra={"error": type(e).__name__, "detail": str(e)})
        return 1
    logger.info("solr_cores.main.ok", extra={"cores": [c.core_name for c in cores]})
    return 0


if __name__ == "__main__":
    sys.exit(main())
