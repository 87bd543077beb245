# Records passed between the provisioning components.

from enum import Enum
from pydantic import BaseModel, ConfigDict, field_validator

TEMPLATE_CORE_NAME = "collection1"
CORE_ID_TOKEN = "$(id)"


class CoreState(str, Enum):
    START = "start"
    COPIED = "copied"
    SCHEMA_UPDATED = "schema_updated"
    CONFIG_PATCHED = "config_patched"
    REGISTERED = "registered"
    FAILED = "failed"


class SchemaSource(str, Enum):
    LEGACY = "legacy"     # conf/schema.xml
    MANAGED = "managed"   # conf/managed-schema


class ExistingCorePolicy(str, Enum):
    FAIL = "fail"
    OVERWRITE = "overwrite"
    MERGE = "merge"


class EngineEndpoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_url: str  # e.g. http://localhost:8983/solr

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("base_url must not be empty")
        return v

    @property
    def cores_url(self) -> str:
        return f"{self.base_url}/admin/cores"


class IndexDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    core_template: str  # text of param[@desc='core'], usually "$(id)"

    @property
    def core_name(self) -> str:
        return self.core_template.replace(CORE_ID_TOKEN, self.id)


class TemplateCore(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str  # instanceDir reported by the engine


class ProvisionedCore(BaseModel):
    """Working record for one descriptor; lives until the core is registered."""

    core_name: str
    path: str
    state: CoreState = CoreState.START
    schema_source: SchemaSource | None = None
