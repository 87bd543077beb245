# Failures raised while provisioning Solr cores.
# Every one of them is fatal to the run: nothing here is retried or recovered.


class ProvisioningError(Exception):
    """Base class; the containing pipeline treats it as a failed step."""


class ConfigurationMissing(ProvisioningError):
    pass


class EngineUnreachable(ProvisioningError):
    def __init__(self, message: str, url: str = "", status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


class TemplateNotFound(ProvisioningError):
    pass


class InvalidCoreName(ProvisioningError):
    pass


class CoreAlreadyExists(ProvisioningError):
    pass


class SchemaSourceMissing(ProvisioningError):
    pass


class SchemaGenerationFailed(ProvisioningError):
    pass


class MergeConflict(ProvisioningError):
    pass


class FileWriteFailed(ProvisioningError):
    pass


class RegistrationFailed(ProvisioningError):
    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class CopyFailed(ProvisioningError):
    pass
