"""Tenant access policies for data-access operations.

A policy decides, per entity and action, which filter restricts reads to the
caller's tenant and which data scopes writes to it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from tenantflow.analysis.merge import MutationMerger
from tenantflow.analysis.relationships import SchemaGraph
from tenantflow.analysis.tenant import TenantRelationResolver
from tenantflow.analysis.types import tenant_connect
from tenantflow.core.errors import ConfigurationError

log = logging.getLogger(__name__)


class PolicyAction(str, Enum):
    LIST = "list"
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class PolicyResult:
    """Outcome of a policy check."""
    ok: bool
    message: Optional[str] = None
    where: Dict[str, Any] = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)


def _tenant_filter(
    entity_name: str,
    tenant_id: str,
    resolver: TenantRelationResolver,
    tenant_field: Optional[str],
) -> Dict[str, Any]:
    # The column behind the tenant relation may be named per entity (company_id)
    try:
        foreign_keys = resolver.foreign_keys_for(entity_name)
    except ConfigurationError:
        foreign_keys = []
    if len(foreign_keys) == 1:
        return {foreign_keys[0]: tenant_id}
    if tenant_field:
        return {tenant_field: tenant_id}
    return {}


def evaluate_tenant_policy(
    action: PolicyAction,
    entity_name: str,
    tenant_id: Optional[str],
    graph: SchemaGraph,
    resolver: TenantRelationResolver,
) -> PolicyResult:
    """
    Evaluate the tenant policy for an action on an entity.

    Reads and deletes are filtered by the foreign key behind the entity's tenant
    relation, or by the scalar tenant field when no single key is known.
    Creates and updates connect the tenant through the entity's tenant relation,
    falling back to the scalar field when no relation resolves.
    """
    action = PolicyAction(action)
    definition = graph.get_definition(entity_name)

    if resolver.config.is_exempt(entity_name):
        return PolicyResult(ok=True)

    if not tenant_id:
        return PolicyResult(ok=False, message="Tenant required")

    tenant_field = resolver.config.tenant_field
    has_tenant_field = bool(tenant_field) and tenant_field in definition.scalar_field_names()
    where = _tenant_filter(entity_name, tenant_id, resolver, tenant_field if has_tenant_field else None)

    if action in (PolicyAction.LIST, PolicyAction.READ, PolicyAction.DELETE):
        return PolicyResult(ok=True, where=where)

    try:
        relation = resolver.relation_for(entity_name)
        data = {relation: tenant_connect(tenant_id)} if relation else {}
    except ConfigurationError:
        if not has_tenant_field:
            raise
        log.warning("No tenant relation resolved; scoping by %s", tenant_field,
                    extra={"entity": entity_name, "stage": "policy"})
        data = {tenant_field: tenant_id}

    if action == PolicyAction.CREATE:
        return PolicyResult(ok=True, data=data)
    return PolicyResult(ok=True, where=where, data=data)


def apply_policy(
    args: Dict[str, Any],
    policy: PolicyResult,
    merger: MutationMerger,
    entity_name: str,
) -> Dict[str, Any]:
    """
    Combine a policy with the arguments of a persistence call.

    ``where`` conditions are AND-ed with the caller's filter and ``data`` is
    passed through the merger so nested creates are scoped as well.
    """
    result = dict(args)

    if policy.where:
        caller_where = args.get("where")
        result["where"] = {"AND": [caller_where, policy.where]} if caller_where else dict(policy.where)

    if "data" in args and policy.data:
        relation, value = next(iter(policy.data.items()))
        if isinstance(value, dict):
            result["data"] = merger.merge(args["data"], value, entity_name)
        else:
            # Scalar tenant field fallback
            data = args["data"]
            if isinstance(data, dict) and relation not in data:
                result["data"] = {**data, relation: value}

    return result
