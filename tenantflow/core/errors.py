"""Exception types raised by tenantflow."""
from typing import NoReturn, Optional


class TenantFlowError(Exception):
    """Base exception for all tenantflow errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ConfigurationError(TenantFlowError):
    """Raised when the tenant configuration cannot scope an entity.

    Carries the entity and tenant entity names so callers can report which
    part of the schema needs an explicit override.
    """

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        tenant_entity: Optional[str] = None,
        config_key: Optional[str] = None,
    ):
        super().__init__(message)
        self.entity = entity
        self.tenant_entity = tenant_entity
        self.config_key = config_key


class EntityNotFoundError(TenantFlowError):
    """Raised when an entity referenced by name is not part of the schema."""

    def __init__(self, entity_name: str):
        super().__init__(f'Entity "{entity_name}" not found in schema')
        self.entity_name = entity_name


class FileSystemError(TenantFlowError):
    """Raised when a generated artifact cannot be written."""

    def __init__(self, operation: str, path: str, cause: Optional[BaseException] = None):
        super().__init__(f'Failed to {operation} file at "{path}"', cause=cause)
        self.operation = operation
        self.path = path


def handle_generator_error(error: BaseException) -> NoReturn:
    """Re-raise tenantflow errors as-is and wrap anything else."""
    if isinstance(error, TenantFlowError):
        raise error
    raise TenantFlowError(f"Unexpected error: {error}", cause=error) from error
