from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional
from fastapi import HTTPException, Request
from tenantflow.analysis.merge import MutationMerger
from tenantflow.analysis.relationships import SchemaGraph
from tenantflow.analysis.tenant import TenantRelationResolver
from tenantflow.analysis.types import TenantConfig
from tenantflow.core.errors import ConfigurationError
from tenantflow.schemas.entities import SchemaDocument


@dataclass
class SchemaContext:
    """Schema graph and tenant machinery shared by all requests."""
    graph: SchemaGraph
    resolver: TenantRelationResolver
    merger: MutationMerger
    tenant_relations: Dict[str, str] = field(default_factory=dict)

    @staticmethod
    def build(document: SchemaDocument, default_config: Optional[TenantConfig] = None) -> "SchemaContext":
        """Build the context; a "tenant" block in the document wins over ``default_config``."""
        if document.tenant is not None:
            config = document.tenant.to_config()
        elif default_config is None:
            raise ConfigurationError("Missing tenant configuration", config_key="tenant")
        else:
            config = default_config
        graph = SchemaGraph.from_entities(document.to_definitions())
        resolver = TenantRelationResolver(graph, config)
        return SchemaContext(
            graph=graph,
            resolver=resolver,
            merger=MutationMerger(graph, resolver),
            tenant_relations=resolver.relation_map(),
        )


def get_schema_context(request: Request) -> SchemaContext:
    context = getattr(request.app.state, "schema_context", None)
    if context is None:
        raise HTTPException(status_code=503, detail="No schema loaded")
    return context
