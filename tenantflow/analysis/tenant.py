"""Resolution of the relation field that scopes each entity to its tenant.

Relation names do not follow a convention (one entity may call its tenant
relation ``company``, another ``company_relation``), so resolution is driven by
the entity type a relation points at, never by matching field names.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from tenantflow.analysis.relationships import SchemaGraph
from tenantflow.analysis.types import (
    EntityRelationships,
    RelationshipInfo,
    TenantBinding,
    TenantConfig,
    tenant_connect,
)
from tenantflow.core.errors import ConfigurationError

log = logging.getLogger(__name__)


def _candidates(rels: EntityRelationships, tenant_entity: str) -> List[RelationshipInfo]:
    owned = [r for r in rels.owns if r.related_entity == tenant_entity]
    if owned:
        return owned
    return [r for r in rels.referenced_by if r.related_entity == tenant_entity]


def resolve_tenant_relation(
    rels: EntityRelationships,
    tenant_entity: str,
    overrides: Optional[Mapping[str, str]] = None,
    foreign_key_convention: Optional[str] = None,
) -> str:
    """
    Resolve the relation field connecting an entity to the tenant entity.

    Args:
        rels: Relationships of the entity being scoped
        tenant_entity: Name of the tenant entity (e.g. "Company")
        overrides: Optional entity name -> relation field name overrides
        foreign_key_convention: Canonical FK name used to break ties (e.g. "companyId")

    Returns:
        The relation field name

    Raises:
        ConfigurationError: If no relation or more than one unresolvable relation matches
    """
    entity_name = rels.entity_name
    candidates = _candidates(rels, tenant_entity)

    override = (overrides or {}).get(entity_name)
    if override:
        all_relations = rels.owns + rels.referenced_by
        if not any(r.field_name == override and r.related_entity == tenant_entity for r in all_relations):
            raise ConfigurationError(
                f'Override "{override}" for {entity_name} is not a relation to {tenant_entity}',
                entity=entity_name,
                tenant_entity=tenant_entity,
                config_key="tenant_relation_overrides",
            )
        return override

    if len(candidates) == 1:
        return candidates[0].field_name

    if not candidates:
        raise ConfigurationError(
            f"{entity_name} has no relation to tenant entity {tenant_entity}",
            entity=entity_name,
            tenant_entity=tenant_entity,
        )

    if foreign_key_convention:
        by_convention = [r for r in candidates if foreign_key_convention in (r.foreign_keys or ())]
        if len(by_convention) == 1:
            return by_convention[0].field_name

    names = ", ".join(r.field_name for r in candidates)
    raise ConfigurationError(
        f"{entity_name} has {len(candidates)} relations to tenant entity {tenant_entity} ({names}); "
        f"configure an override for {entity_name}",
        entity=entity_name,
        tenant_entity=tenant_entity,
        config_key="tenant_relation_overrides",
    )


class TenantRelationResolver:
    """
    Memoising resolver bound to one schema graph and one tenant configuration.

    Usage:
        resolver = TenantRelationResolver(graph, config)
        resolver.relation_for("Todo")            # -> "company"
        resolver.binding_for("Tag", "c1")        # -> TenantBinding("company_relation", {...})
    """

    def __init__(self, graph: SchemaGraph, config: TenantConfig):
        if not config.tenant_entity:
            raise ConfigurationError("Missing required tenant entity configuration",
                                     config_key="tenant_entity")
        graph.get_definition(config.tenant_entity)
        self.graph = graph
        self.config = config
        self._cache: Dict[str, Optional[str]] = {}
        self._failures: Dict[str, ConfigurationError] = {}

    def relation_for(self, entity_name: str) -> Optional[str]:
        """
        Tenant relation field for an entity, or None for exempt entities.

        Raises:
            EntityNotFoundError: If the entity is not part of the schema
            ConfigurationError: If the relation is missing or ambiguous
        """
        if entity_name in self._cache:
            return self._cache[entity_name]
        if entity_name in self._failures:
            raise self._failures[entity_name]

        rels = self.graph.get_relationships(entity_name)
        if self.config.is_exempt(entity_name):
            relation = None
        else:
            try:
                relation = resolve_tenant_relation(
                    rels,
                    self.config.tenant_entity,
                    overrides=self.config.overrides,
                    foreign_key_convention=self.config.tenant_field,
                )
            except ConfigurationError as e:
                self._failures[entity_name] = e
                raise
        self._cache[entity_name] = relation
        return relation

    def binding_for(self, entity_name: str, tenant_id: str) -> Optional[TenantBinding]:
        relation = self.relation_for(entity_name)
        if relation is None:
            return None
        return TenantBinding(relation_field_name=relation, value=tenant_connect(tenant_id))

    def foreign_keys_for(self, entity_name: str) -> List[str]:
        """Scalar foreign keys carried by the entity's tenant relation, if it owns one."""
        relation = self.relation_for(entity_name)
        if relation is None:
            return []
        for rel in self.graph.get_relationships(entity_name).owns:
            if rel.field_name == relation:
                return list(rel.foreign_keys or ())
        return []

    def relation_map(self) -> Dict[str, str]:
        """Tenant relation of every entity that resolves; exempt entities are left out."""
        result = {}
        for entity_name in self.graph.entity_names:
            try:
                relation = self.relation_for(entity_name)
            except ConfigurationError:
                continue
            if relation is not None:
                result[entity_name] = relation
        return result

    def unresolved(self) -> Dict[str, ConfigurationError]:
        """Entities whose tenant relation cannot be resolved, with the reason."""
        failures = {}
        for entity_name in self.graph.entity_names:
            try:
                self.relation_for(entity_name)
            except ConfigurationError as e:
                failures[entity_name] = e
        return failures


def extract_tenant_id(data: Any, relation_names: Iterable[str]) -> Optional[str]:
    """Tenant id carried by a ``connect`` under one of the known tenant relations."""
    if not isinstance(data, dict):
        return None
    for name in relation_names:
        value = data.get(name)
        if isinstance(value, dict):
            connect = value.get("connect")
            if isinstance(connect, dict) and connect.get("id"):
                return connect["id"]
    return None
