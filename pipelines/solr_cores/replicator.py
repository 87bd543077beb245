import os
from .errors import CopyFailed, CoreAlreadyExists, InvalidCoreName
from .logs import get_logger
from .models import TEMPLATE_CORE_NAME, CoreState, ExistingCorePolicy, ProvisionedCore, TemplateCore
from .transport import FileSystem

logger = get_logger()

CORE_PROPERTIES = "core.properties"  # marks a directory as a core to Solr's discovery


def destination_path(template: TemplateCore, core_name: str) -> str:
    """Template path with the first "collection1" swapped for core_name.

    Plain substring replacement; a template path mentioning collection1 twice
    only has its first occurrence renamed.
    """
    if not core_name or core_name == TEMPLATE_CORE_NAME:
        raise InvalidCoreName(f"core name {core_name!r} would overwrite the template core")
    if TEMPLATE_CORE_NAME not in template.path:
        raise InvalidCoreName(f"template path {template.path} does not contain {TEMPLATE_CORE_NAME!r}; cannot derive a path for '{core_name}'")
    return template.path.replace(TEMPLATE_CORE_NAME, core_name, 1)


class CoreReplicator:
    def __init__(self, fs: FileSystem, policy: ExistingCorePolicy = ExistingCorePolicy.FAIL):
        self.fs = fs
        self.policy = policy

    def replicate(self, template: TemplateCore, core_name: str) -> ProvisionedCore:
        dest = destination_path(template, core_name)
        core = ProvisionedCore(core_name=core_name, path=dest)

        dirs_exist_ok = False
        if self.fs.exists(dest):
            if self.policy == ExistingCorePolicy.FAIL:
                raise CoreAlreadyExists(f"core directory {dest} already exists (policy={self.policy.value})")
            if self.policy == ExistingCorePolicy.OVERWRITE:
                logger.warning("solr_cores.core.removing_existing", extra={"core": core_name, "path": dest})
                try:
                    self.fs.remove_tree(dest)
                except OSError as e:
                    raise CopyFailed(f"cannot remove existing directory {dest} for core '{core_name}': {e}") from e
            else:
                dirs_exist_ok = True

        # instanceDir comes from the engine; it may not exist on this host (e.g. Solr in a container)
        try:
            self.fs.copy_tree(template.path, dest, dirs_exist_ok=dirs_exist_ok)
            self.fs.delete_file(os.path.join(dest, CORE_PROPERTIES))
        except OSError as e:
            raise CopyFailed(f"cannot copy template core {template.path} to {dest} for core '{core_name}': {e}") from e
        core.state = CoreState.COPIED
        logger.info("solr_cores.core.copied", extra={"core": core_name, "src": template.path, "dst": dest})
        return core
