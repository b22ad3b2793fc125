"""
Tenant injection for nested-write payloads.

A payload is an untyped tree. Each relation key may hold an operation object
whose reserved keys select how its children are written:

{
    "title": "My Todo",
    "tags": {
        "create": [{"name": "a"}, {"name": "b"}],
        "connectOrCreate": {"where": {"id": "t"}, "create": {"name": "c"}},
        "update": [{"where": {"id": "t1"}, "data": {"name": "x"}}]
    },
    "list": {"connect": {"id": "l1"}}
}

Every create site (and every update data object) receives the tenant relation
of its own entity type:

{
    "title": "My Todo",
    "company": {"connect": {"id": "c1"}},
    "tags": {
        "create": [
            {"name": "a", "company_relation": {"connect": {"id": "c1"}}},
            {"name": "b", "company_relation": {"connect": {"id": "c1"}}}
        ],
        ...
    },
    "list": {"connect": {"id": "l1"}}
}
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, Optional

from tenantflow.analysis.relationships import SchemaGraph
from tenantflow.analysis.tenant import TenantRelationResolver
from tenantflow.analysis.types import TenantConfig

log = logging.getLogger(__name__)

# Operations that only reference existing records and never carry create data
PASS_THROUGH_OPERATIONS = ("connect", "disconnect", "set", "delete", "deleteMany", "updateMany")

OPERATION_KEYS = frozenset(
    ("create", "createMany", "connectOrCreate", "upsert", "update") + PASS_THROUGH_OPERATIONS
)


def is_plain_mapping(value: Any) -> bool:
    """True for dict nodes; dates, lists and scalars are leaves."""
    return isinstance(value, dict)


def is_relation_write(value: Any) -> bool:
    """True if a value is an operation object (carries at least one reserved key)."""
    return is_plain_mapping(value) and any(key in OPERATION_KEYS for key in value)


def _pass_through(payload: Any, tenant_value: Dict[str, Any], entity_name: str) -> Any:
    return payload


class MutationMerger:
    """
    Injects per-entity tenant bindings into nested-write payloads.

    The merger never mutates its input. Levels it touches are shallow-copied and
    untouched sub-trees are shared with the input. A tenant relation that is
    already present at a node is left alone, so merging twice gives the same
    result as merging once.

    Usage:
        merger = MutationMerger(graph, resolver)
        data = merger.merge(payload, {"connect": {"id": tenant_id}}, "Todo")
    """

    def __init__(self, graph: SchemaGraph, resolver: TenantRelationResolver):
        self.graph = graph
        self.resolver = resolver
        self._handlers: Dict[str, Callable[[Any, Dict[str, Any], str], Any]] = {
            "create": self._merge_create,
            "createMany": self._merge_create_many,
            "connectOrCreate": self._merge_connect_or_create,
            "upsert": self._merge_upsert,
            "update": self._merge_update,
        }
        for operation in PASS_THROUGH_OPERATIONS:
            self._handlers[operation] = _pass_through

    def merge(self, node: Any, tenant_value: Dict[str, Any], entity_name: str) -> Any:
        """
        Return a copy of ``node`` with tenant bindings injected at every create site.

        Args:
            node: Nested-write data for ``entity_name``
            tenant_value: Value bound to the tenant relation, e.g. {"connect": {"id": "c1"}}
            entity_name: Entity the root of ``node`` belongs to

        Raises:
            EntityNotFoundError: If ``entity_name`` is not in the schema
            ConfigurationError: If a create site targets an entity whose tenant
                relation is missing or ambiguous
        """
        return self._merge_entity(node, tenant_value, entity_name)

    def _merge_entity(self, node: Any, tenant_value: Dict[str, Any], entity_name: str) -> Any:
        if not is_plain_mapping(node):
            return node

        result = dict(node)
        relation = self.resolver.relation_for(entity_name)
        if relation is not None and not self._already_scoped(node, relation, entity_name):
            result[relation] = copy.deepcopy(tenant_value)

        for key, value in node.items():
            if not is_relation_write(value):
                continue
            if self._declares_scalar(entity_name, key):
                # Scalar/JSON column that happens to use an operation-like key
                continue
            result[key] = self._merge_relation_write(value, tenant_value, entity_name, key)

        return result

    def _declares_scalar(self, entity_name: str, field_name: str) -> bool:
        definition = self.graph.definitions.get(entity_name)
        return definition is not None and field_name in definition.scalar_field_names()

    def _already_scoped(self, node: Dict[str, Any], relation: str, entity_name: str) -> bool:
        if relation in node:
            return True
        return any(fk in node for fk in self.resolver.foreign_keys_for(entity_name))

    def _merge_relation_write(
        self,
        value: Dict[str, Any],
        tenant_value: Dict[str, Any],
        parent_entity: str,
        field_name: str,
    ) -> Dict[str, Any]:
        target = self.graph.relation_target(parent_entity, field_name)
        if target is None:
            log.debug("Relation %s is not declared; merging at parent context", field_name,
                      extra={"entity": parent_entity, "stage": "merge"})
            target = parent_entity
        else:
            self._check_cardinality(value, parent_entity, field_name)

        result = dict(value)
        for operation, payload in value.items():
            handler = self._handlers.get(operation)
            if handler is None:
                continue
            result[operation] = handler(payload, tenant_value, target)
        return result

    def _check_cardinality(self, value: Dict[str, Any], parent_entity: str, field_name: str) -> None:
        descriptor = self.graph.relation_field(parent_entity, field_name)
        if descriptor is None or descriptor.is_list:
            return
        for operation in ("create", "connectOrCreate", "update", "upsert"):
            if isinstance(value.get(operation), list):
                log.debug("Array payload for %s on single relation %s; trusting payload shape",
                          operation, field_name,
                          extra={"entity": parent_entity, "stage": "merge"})

    def _merge_create(self, payload: Any, tenant_value: Dict[str, Any], entity_name: str) -> Any:
        if isinstance(payload, list):
            return [self._merge_entity(item, tenant_value, entity_name) for item in payload]
        return self._merge_entity(payload, tenant_value, entity_name)

    def _merge_create_many(self, payload: Any, tenant_value: Dict[str, Any], entity_name: str) -> Any:
        if not is_plain_mapping(payload) or "data" not in payload:
            return payload
        data = payload["data"]
        if isinstance(data, list):
            merged = [self._merge_entity(item, tenant_value, entity_name) for item in data]
        else:
            merged = self._merge_entity(data, tenant_value, entity_name)
        return {**payload, "data": merged}

    def _merge_connect_or_create(self, payload: Any, tenant_value: Dict[str, Any], entity_name: str) -> Any:
        if isinstance(payload, list):
            return [self._merge_connect_or_create_item(item, tenant_value, entity_name) for item in payload]
        return self._merge_connect_or_create_item(payload, tenant_value, entity_name)

    def _merge_connect_or_create_item(self, item: Any, tenant_value: Dict[str, Any], entity_name: str) -> Any:
        if not is_plain_mapping(item) or "create" not in item:
            return item
        # "where" identifies an existing record and is never scoped
        return {**item, "create": self._merge_create(item["create"], tenant_value, entity_name)}

    def _merge_upsert(self, payload: Any, tenant_value: Dict[str, Any], entity_name: str) -> Any:
        if isinstance(payload, list):
            return [self._merge_upsert_item(item, tenant_value, entity_name) for item in payload]
        return self._merge_upsert_item(payload, tenant_value, entity_name)

    def _merge_upsert_item(self, item: Any, tenant_value: Dict[str, Any], entity_name: str) -> Any:
        if not is_plain_mapping(item):
            return item
        result = dict(item)
        if "create" in item:
            result["create"] = self._merge_create(item["create"], tenant_value, entity_name)
        if "update" in item:
            result["update"] = self._merge_update(item["update"], tenant_value, entity_name)
        return result

    def _merge_update(self, payload: Any, tenant_value: Dict[str, Any], entity_name: str) -> Any:
        if isinstance(payload, list):
            return [self._merge_update_item(item, tenant_value, entity_name) for item in payload]
        return self._merge_update_item(payload, tenant_value, entity_name)

    def _merge_update_item(self, item: Any, tenant_value: Dict[str, Any], entity_name: str) -> Any:
        if not is_plain_mapping(item):
            return item
        if "data" in item and ("where" in item or not self._declares_scalar(entity_name, "data")):
            # The binding belongs inside "data", never on the {where, data} or {data} wrapper
            return {**item, "data": self._merge_entity(item["data"], tenant_value, entity_name)}
        if "where" in item:
            # {where} without data is malformed
            return item
        return self._merge_entity(item, tenant_value, entity_name)


def merge_tenant_data(
    graph: SchemaGraph,
    config: TenantConfig,
    node: Any,
    tenant_value: Dict[str, Any],
    entity_name: str,
    resolver: Optional[TenantRelationResolver] = None,
) -> Any:
    """
    Convenience function to merge a tenant binding into a nested-write payload.

    Args:
        graph: Schema graph
        config: Tenant configuration
        node: Nested-write data
        tenant_value: Value bound to the tenant relation
        entity_name: Root entity of ``node``
        resolver: Optional pre-built resolver to reuse its cache

    Returns:
        Merged payload
    """
    merger = MutationMerger(graph, resolver or TenantRelationResolver(graph, config))
    return merger.merge(node, tenant_value, entity_name)
