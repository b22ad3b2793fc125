from typing import Dict, List
from pydantic_settings import BaseSettings, SettingsConfigDict
from tenantflow.analysis.types import TenantConfig

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    app_name: str = "tenantflow"
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    log_level: str = "INFO"

    schema_path: str | None = None
    output_dir: str = "generated/tenant"

    tenant_entity: str | None = None
    tenant_field: str = "tenantId"
    tenant_relation_overrides: Dict[str, str] = {}
    tenant_exempt_entities: List[str] = []

    def tenant_config(self) -> TenantConfig:
        """Build the immutable tenant configuration passed to the resolver."""
        return TenantConfig(
            tenant_entity=self.tenant_entity,
            tenant_field=self.tenant_field,
            overrides=dict(self.tenant_relation_overrides),
            exempt_entities=frozenset(self.tenant_exempt_entities),
        )

settings = Settings()
