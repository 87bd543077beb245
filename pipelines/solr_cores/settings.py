import os
from pydantic import BaseModel, Field
from .models import ExistingCorePolicy


class ProvisionerSettings(BaseModel):
    """Knobs for one provisioning run. Defaults match a stock Sitecore + Solr install."""

    log_level: str = "INFO"
    timeout_sec: float = Field(default=30.0, gt=0)
    wait_sec: float = Field(default=0.0, ge=0)  # 0 = don't wait for the admin API
    existing_core: ExistingCorePolicy = ExistingCorePolicy.FAIL
    schema_library: str = "contentsearch_schema.py"  # under {web_root}/bin
    schema_class: str = "SchemaGenerator"
    schema_method: str = "generate_schema"

    @classmethod
    def from_env(cls) -> "ProvisionerSettings":
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            timeout_sec=float(os.getenv("SOLR_TIMEOUT_SEC", "30")),
            wait_sec=float(os.getenv("SOLR_WAIT_SEC", "0")),
            existing_core=ExistingCorePolicy(os.getenv("SOLR_EXISTING_CORE", "fail").lower()),
            schema_library=os.getenv("SCHEMA_GENERATOR_LIBRARY", "contentsearch_schema.py"),
            schema_class=os.getenv("SCHEMA_GENERATOR_CLASS", "SchemaGenerator"),
            schema_method=os.getenv("SCHEMA_GENERATOR_METHOD", "generate_schema"),
        )
