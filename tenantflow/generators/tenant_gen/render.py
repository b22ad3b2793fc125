"""String templates for tenant artifacts (Jinja2-free)."""
from typing import Dict, List
from tenantflow.analysis.relationships import (
    SchemaGraph,
    get_relationship_functions,
    get_relationship_summary,
    has_relationships,
)
from tenantflow.analysis.tenant import TenantRelationResolver


def _render_str_map(name: str, mapping: Dict[str, str]) -> List[str]:
    if not mapping:
        return [f"{name}: Dict[str, str] = {{}}"]
    lines = [f"{name}: Dict[str, str] = {{"]
    for key in sorted(mapping):
        lines.append(f"    {key!r}: {mapping[key]!r},")
    lines.append("}")
    return lines


def render_tenant_map_module(graph: SchemaGraph, resolver: TenantRelationResolver) -> str:
    """Generate tenant_map.py content.

    The module maps every scoped entity to its tenant relation and every
    relation field to its target entity, plus a helper that builds the tenant
    connection for an entity.
    """
    relation_map = resolver.relation_map()

    lines = [
        '"""Tenant relation maps. Generated by tenantflow, do not edit."""',
        "from typing import Any, Dict, Optional",
        "",
        f"TENANT_ENTITY = {resolver.config.tenant_entity!r}",
        f"TENANT_FIELD = {resolver.config.tenant_field!r}",
        "",
    ]
    lines.extend(_render_str_map("TENANT_RELATION_MAP", relation_map))
    lines.append("")

    lines.append("RELATION_TARGET_MAP: Dict[str, Dict[str, str]] = {")
    for entity_name in sorted(graph.relation_targets):
        targets = graph.relation_targets[entity_name]
        if not targets:
            lines.append(f"    {entity_name!r}: {{}},")
            continue
        lines.append(f"    {entity_name!r}: {{")
        for field_name in sorted(targets):
            lines.append(f"        {field_name!r}: {targets[field_name]!r},")
        lines.append("    },")
    lines.append("}")
    lines.append("")
    lines.append("")
    lines.append("def tenant_connection(entity: str, tenant_id: Optional[str]) -> Dict[str, Any]:")
    lines.append('    """Tenant relation data for an entity, or an empty dict if it is not scoped."""')
    lines.append("    relation = TENANT_RELATION_MAP.get(entity)")
    lines.append("    if not tenant_id or not relation:")
    lines.append("        return {}")
    lines.append('    return {relation: {"connect": {"id": tenant_id}}}')
    lines.append("")

    return "\n".join(lines)


def render_relationship_report(graph: SchemaGraph, resolver: TenantRelationResolver) -> str:
    """Generate RELATIONSHIPS.md content."""
    unresolved = resolver.unresolved()

    lines = [
        "# Relationships",
        "",
        f"Tenant entity: `{resolver.config.tenant_entity}`",
        "",
    ]

    for entity_name in sorted(graph.relationships):
        rels = graph.relationships[entity_name]
        lines.append(f"## {entity_name}")
        lines.append("")
        lines.append("```")
        lines.append(get_relationship_summary(rels))
        lines.append("```")
        lines.append("")

        if entity_name in unresolved:
            lines.append(f"Tenant relation: **unresolved** ({unresolved[entity_name]})")
        elif resolver.config.is_exempt(entity_name):
            lines.append("Tenant relation: exempt")
        else:
            lines.append(f"Tenant relation: `{resolver.relation_for(entity_name)}`")
        lines.append("")

        if has_relationships(rels):
            functions = get_relationship_functions(rels)
            lines.append("| Helper | Relations |")
            lines.append("| --- | --- |")
            for helper, infos in (
                ("set_required", functions.set_required),
                ("set_optional", functions.set_optional),
                ("remove", functions.remove),
                ("add_many", functions.add_many),
                ("set_many", functions.set_many),
                ("remove_many", functions.remove_many),
                ("clear_many", functions.clear_many),
            ):
                if infos:
                    lines.append(f"| {helper} | {', '.join(r.field_name for r in infos)} |")
            lines.append("")

    return "\n".join(lines)
