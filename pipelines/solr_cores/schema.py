# Regenerates conf/schema.xml for a freshly copied core.
#
# The actual schema rewrite belongs to the target application's search
# integration library, so it is reached through the SchemaGenerator plugin
# interface. LibrarySchemaGenerator is the shim that loads it from the
# application's bin folder; another target version only needs another shim.

import importlib.util, os
from typing import Protocol
from .errors import SchemaGenerationFailed, SchemaSourceMissing
from .logs import get_logger
from .models import CoreState, ProvisionedCore, SchemaSource
from .transport import FileSystem

logger = get_logger()

LEGACY_SCHEMA = "schema.xml"
MANAGED_SCHEMA = "managed-schema"


class SchemaGenerator(Protocol):
    def generate_schema(self, input_path: str, output_path: str) -> None: ...


class LibrarySchemaGenerator:
    """Loads `class_name` from `{web_root}/bin/{library}` and calls `method_name(input, output)` on an instance."""

    def __init__(self, web_root: str, library: str = "contentsearch_schema.py",
                 class_name: str = "SchemaGenerator", method_name: str = "generate_schema"):
        self.library_path = os.path.join(web_root, "bin", library)
        self.class_name = class_name
        self.method_name = method_name

    def _resolve(self):
        spec = importlib.util.spec_from_file_location("_target_schema_library", self.library_path)
        if spec is None or spec.loader is None:
            raise ImportError(f"cannot load a module from {self.library_path}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        cls = getattr(module, self.class_name)
        return getattr(cls(), self.method_name)

    def generate_schema(self, input_path: str, output_path: str) -> None:
        try:
            method = self._resolve()
        except Exception as e:
            raise SchemaGenerationFailed(
                f"cannot resolve {self.class_name}.{self.method_name} from {self.library_path}: {e!r}") from e
        method(input_path, output_path)


def schema_paths(core_path: str) -> tuple[str, str]:
    conf = os.path.join(core_path, "conf")
    return os.path.join(conf, LEGACY_SCHEMA), os.path.join(conf, MANAGED_SCHEMA)


class SchemaAdapter:
    def __init__(self, fs: FileSystem, generator: SchemaGenerator):
        self.fs = fs
        self.generator = generator

    def select_source(self, core_path: str) -> tuple[SchemaSource, str]:
        legacy, managed = schema_paths(core_path)
        if self.fs.is_file(legacy):
            return SchemaSource.LEGACY, legacy
        if self.fs.is_file(managed):
            return SchemaSource.MANAGED, managed
        raise SchemaSourceMissing(f"Schema file not found: Checked here {legacy} and here {managed}.")

    def update_schema(self, core: ProvisionedCore) -> ProvisionedCore:
        source, input_path = self.select_source(core.path)
        output_path = schema_paths(core.path)[0]  # always materialize the legacy file
        try:
            self.generator.generate_schema(input_path, output_path)
        except SchemaGenerationFailed:
            raise
        except Exception as e:
            raise SchemaGenerationFailed(f"schema generation for '{core.core_name}' ({input_path} -> {output_path}) failed: {e!r}") from e
        core.schema_source = source
        core.state = CoreState.SCHEMA_UPDATED
        logger.info("solr_cores.schema.updated",
                    extra={"core": core.core_name, "source": source.value, "input": input_path, "output": output_path})
        return core
