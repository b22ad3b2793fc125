"""Orchestrator for tenant artifact generation."""
import logging
from pathlib import Path
from typing import List, Optional
from tenantflow.analysis.relationships import SchemaGraph
from tenantflow.analysis.tenant import TenantRelationResolver
from tenantflow.analysis.types import TenantConfig
from tenantflow.core.config import settings
from tenantflow.core.errors import handle_generator_error
from tenantflow.generators.tenant_gen.loader import load_schema_document
from tenantflow.generators.tenant_gen.render import (
    render_relationship_report,
    render_tenant_map_module,
)
from tenantflow.generators.tenant_gen.types import GeneratedFile
from tenantflow.generators.tenant_gen.writer import write_files

log = logging.getLogger(__name__)


def generate_tenant_artifacts(
    schema_path: Path,
    out_dir: Path,
    config: Optional[TenantConfig] = None,
) -> List[GeneratedFile]:
    """
    Generate tenant relation artifacts for a schema.

    Args:
        schema_path: Path to the schema document (JSON or YAML)
        out_dir: Output directory for generated files
        config: Tenant configuration; defaults to the "tenant" block of the document

    Returns:
        List of GeneratedFile objects
    """
    try:
        document = load_schema_document(schema_path)
        if config is None:
            if document.tenant is None:
                config = settings.tenant_config()
            else:
                config = document.tenant.to_config()

        graph = SchemaGraph.from_entities(document.to_definitions())
        resolver = TenantRelationResolver(graph, config)

        for entity_name, error in resolver.unresolved().items():
            log.warning("Tenant relation unresolved: %s", error,
                        extra={"entity": entity_name, "stage": "resolve"})

        files = [
            GeneratedFile(path="tenant_map.py", content=render_tenant_map_module(graph, resolver)),
            GeneratedFile(path="RELATIONSHIPS.md", content=render_relationship_report(graph, resolver)),
        ]

        write_files(files, out_dir)
        log.info("Generated %d files in %s", len(files), out_dir, extra={"stage": "write"})
        return files
    except Exception as e:
        handle_generator_error(e)
