"""Relationship graph derived from entity definitions.

Usage:
    from tenantflow.analysis.relationships import SchemaGraph

    graph = SchemaGraph.from_entities(entities)
    graph.relationships["Todo"].owns          # relations Todo holds a FK for
    graph.relationships["Company"].referenced_by
    graph.relation_target("Todo", "tags")     # -> "Tag"

The graph is a flat mapping keyed by entity name. Relations reference other
entities by name only, so self relations and cycles need no special handling.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from tenantflow.analysis.types import (
    EntityDefinition,
    EntityRelationships,
    FieldDescriptor,
    RelationshipFunctions,
    RelationshipInfo,
    RelationshipKind,
)
from tenantflow.core.errors import EntityNotFoundError

log = logging.getLogger(__name__)


def classify_relationship(is_owning_side: bool, is_list: bool) -> RelationshipKind:
    """Relationship kind from ownership and cardinality of the field."""
    if is_list:
        return RelationshipKind.MANY_TO_MANY if is_owning_side else RelationshipKind.ONE_TO_MANY
    return RelationshipKind.MANY_TO_ONE if is_owning_side else RelationshipKind.ONE_TO_ONE


def _find_back_reference(
    related: EntityDefinition, relation_field: FieldDescriptor
) -> Optional[FieldDescriptor]:
    for candidate in related.fields:
        if (
            candidate.is_relation
            and candidate.relation_name == relation_field.relation_name
            and candidate.name != relation_field.name
        ):
            return candidate
    return None


def build_relationship_graph(entities: Iterable[EntityDefinition]) -> Dict[str, EntityRelationships]:
    """
    Analyze all relationships of a schema in one flat pass over the fields.

    Args:
        entities: Entity definitions (name + ordered fields)

    Returns:
        Mapping of entity name to its EntityRelationships, including reverse edges

    Raises:
        EntityNotFoundError: If a relation targets an entity missing from the input
    """
    definitions: Dict[str, EntityDefinition] = {e.name: e for e in entities}
    graph: Dict[str, EntityRelationships] = {
        name: EntityRelationships(entity_name=name) for name in definitions
    }

    for entity in definitions.values():
        current = graph[entity.name]

        for relation_field in entity.relation_fields():
            related_name = relation_field.related_entity
            related = definitions.get(related_name) if related_name else None
            if related is None:
                raise EntityNotFoundError(related_name or f"{entity.name}.{relation_field.name}")

            is_owning = len(relation_field.owned_foreign_keys) > 0
            back_reference = (
                _find_back_reference(related, relation_field)
                if relation_field.relation_name
                else None
            )

            info = RelationshipInfo(
                field_name=relation_field.name,
                related_entity=related_name,
                kind=classify_relationship(is_owning, relation_field.is_list),
                is_required=relation_field.is_required,
                is_owning_side=is_owning,
                foreign_keys=tuple(relation_field.owned_foreign_keys) if is_owning else None,
                back_reference_field=back_reference.name if back_reference else None,
            )

            if is_owning:
                current.owns.append(info)
            current.related_entities.add(related_name)

            if is_owning and back_reference is not None:
                reverse_kind = (
                    RelationshipKind.ONE_TO_MANY if back_reference.is_list else RelationshipKind.ONE_TO_ONE
                )
                related_rels = graph[related_name]
                related_rels.referenced_by.append(RelationshipInfo(
                    field_name=back_reference.name,
                    related_entity=entity.name,
                    kind=reverse_kind,
                    # Back references are optional on the non-owning side
                    is_required=False,
                    is_owning_side=False,
                    back_reference_field=relation_field.name,
                ))
                related_rels.related_entities.add(entity.name)

    return graph


def build_relation_target_map(entities: Iterable[EntityDefinition]) -> Dict[str, Dict[str, str]]:
    """Map of entity -> relation field -> related entity, for every relation field."""
    return {
        entity.name: {
            f.name: f.related_entity
            for f in entity.relation_fields()
            if f.related_entity
        }
        for entity in entities
    }


def get_relationship_functions(rels: EntityRelationships) -> RelationshipFunctions:
    """Classify which relation helpers should be generated for an entity."""
    functions = RelationshipFunctions()

    for rel in rels.owns:
        if rel.kind in (RelationshipKind.MANY_TO_ONE, RelationshipKind.ONE_TO_ONE):
            if rel.is_required:
                functions.set_required.append(rel)
            else:
                functions.set_optional.append(rel)
                functions.remove.append(rel)
        elif rel.kind == RelationshipKind.MANY_TO_MANY:
            functions.add_many.append(rel)
            functions.set_many.append(rel)
            functions.remove_many.append(rel)
            functions.clear_many.append(rel)

    for rel in rels.referenced_by:
        if rel.kind == RelationshipKind.ONE_TO_MANY:
            functions.add_many.append(rel)
            functions.remove_many.append(rel)
            functions.clear_many.append(rel)
        elif rel.kind == RelationshipKind.MANY_TO_ONE:
            # This entity is on the "one" side, can set/remove the reference
            functions.set_optional.append(rel)
            functions.remove.append(rel)

    return functions


def has_relationships(rels: EntityRelationships) -> bool:
    """Check if an entity has any relationships at all."""
    return bool(rels.owns) or bool(rels.referenced_by)


def get_relationship_summary(rels: EntityRelationships) -> str:
    """Human-readable summary of an entity's relationships."""
    lines = [f"{rels.entity_name} relationships:"]

    if rels.owns:
        lines.append("  Owns:")
        for rel in rels.owns:
            required = " (required)" if rel.is_required else " (optional)"
            lines.append(f"    {rel.field_name} -> {rel.related_entity} ({rel.kind.value}){required}")

    if rels.referenced_by:
        lines.append("  Referenced by:")
        for rel in rels.referenced_by:
            lines.append(f"    {rel.related_entity}.{rel.back_reference_field} -> "
                         f"{rels.entity_name}.{rel.field_name} ({rel.kind.value})")

    if not rels.related_entities:
        lines.append("  No relationships")

    return "\n".join(lines)


@dataclass
class SchemaGraph:
    """
    Read-only bundle of a schema's definitions and derived relationship data.

    Built once per schema and shared by every resolver and merge call.
    """
    definitions: Dict[str, EntityDefinition]
    relationships: Dict[str, EntityRelationships]
    relation_targets: Dict[str, Dict[str, str]] = field(default_factory=dict)

    @classmethod
    def from_entities(cls, entities: Iterable[EntityDefinition]) -> "SchemaGraph":
        entity_list = list(entities)
        graph = cls(
            definitions={e.name: e for e in entity_list},
            relationships=build_relationship_graph(entity_list),
            relation_targets=build_relation_target_map(entity_list),
        )
        log.debug("Built relationship graph for %d entities", len(entity_list),
                  extra={"stage": "graph"})
        return graph

    @property
    def entity_names(self) -> List[str]:
        return list(self.definitions)

    def get_definition(self, entity_name: str) -> EntityDefinition:
        definition = self.definitions.get(entity_name)
        if definition is None:
            raise EntityNotFoundError(entity_name)
        return definition

    def get_relationships(self, entity_name: str) -> EntityRelationships:
        rels = self.relationships.get(entity_name)
        if rels is None:
            raise EntityNotFoundError(entity_name)
        return rels

    def relation_target(self, entity_name: str, field_name: str) -> Optional[str]:
        """Related entity of a relation field, or None if the field is not a relation."""
        return self.relation_targets.get(entity_name, {}).get(field_name)

    def relation_field(self, entity_name: str, field_name: str) -> Optional[FieldDescriptor]:
        definition = self.definitions.get(entity_name)
        if definition is None:
            return None
        descriptor = definition.get_field(field_name)
        if descriptor is None or not descriptor.is_relation:
            return None
        return descriptor
