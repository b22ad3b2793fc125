"""Shared fixtures built from the todo schema fixture."""
import json
from pathlib import Path

import pytest

from tenantflow.analysis.merge import MutationMerger
from tenantflow.analysis.relationships import SchemaGraph
from tenantflow.analysis.tenant import TenantRelationResolver
from tenantflow.analysis.types import TenantConfig
from tenantflow.generators.tenant_gen.loader import parse_schema_document

FIXTURES_DIR = Path(__file__).parent / "fixtures"
TODO_SCHEMA = FIXTURES_DIR / "todo_schema.json"


@pytest.fixture
def schema_document():
    return parse_schema_document(json.loads(TODO_SCHEMA.read_text(encoding="utf-8")))


@pytest.fixture
def graph(schema_document):
    return SchemaGraph.from_entities(schema_document.to_definitions())


@pytest.fixture
def config():
    return TenantConfig(tenant_entity="Company", tenant_field="companyId")


@pytest.fixture
def resolver(graph, config):
    return TenantRelationResolver(graph, config)


@pytest.fixture
def merger(graph, resolver):
    return MutationMerger(graph, resolver)
