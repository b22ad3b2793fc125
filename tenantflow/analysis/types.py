"""Dataclasses for schema relationship analysis and tenant scoping."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Set, Tuple


class RelationshipKind(str, Enum):
    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"


@dataclass(frozen=True)
class FieldDescriptor:
    """A single field of an entity definition."""
    name: str
    is_relation: bool = False
    related_entity: Optional[str] = None
    is_list: bool = False
    is_required: bool = False
    relation_name: Optional[str] = None
    owned_foreign_keys: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EntityDefinition:
    """Entity name plus its ordered fields."""
    name: str
    fields: Tuple[FieldDescriptor, ...] = ()

    def relation_fields(self) -> List[FieldDescriptor]:
        return [f for f in self.fields if f.is_relation]

    def scalar_field_names(self) -> Set[str]:
        return {f.name for f in self.fields if not f.is_relation}

    def get_field(self, name: str) -> Optional[FieldDescriptor]:
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass(frozen=True)
class RelationshipInfo:
    """Computed view of one side of a relation."""
    field_name: str
    related_entity: str
    kind: RelationshipKind
    is_required: bool
    is_owning_side: bool
    foreign_keys: Optional[Tuple[str, ...]] = None
    back_reference_field: Optional[str] = None


@dataclass
class EntityRelationships:
    """Relations owned by an entity and relations pointing at it."""
    entity_name: str
    owns: List[RelationshipInfo] = field(default_factory=list)
    referenced_by: List[RelationshipInfo] = field(default_factory=list)
    related_entities: Set[str] = field(default_factory=set)


@dataclass
class RelationshipFunctions:
    """Relation helpers a generated data-access layer exposes for an entity."""
    set_required: List[RelationshipInfo] = field(default_factory=list)
    set_optional: List[RelationshipInfo] = field(default_factory=list)
    remove: List[RelationshipInfo] = field(default_factory=list)
    add_many: List[RelationshipInfo] = field(default_factory=list)
    set_many: List[RelationshipInfo] = field(default_factory=list)
    remove_many: List[RelationshipInfo] = field(default_factory=list)
    clear_many: List[RelationshipInfo] = field(default_factory=list)


@dataclass(frozen=True)
class TenantConfig:
    """Tenant scoping configuration, passed explicitly to the resolver."""
    tenant_entity: Optional[str]
    tenant_field: Optional[str] = "tenantId"
    overrides: Dict[str, str] = field(default_factory=dict)
    exempt_entities: FrozenSet[str] = frozenset()

    def is_exempt(self, entity_name: str) -> bool:
        return entity_name == self.tenant_entity or entity_name in self.exempt_entities


@dataclass(frozen=True)
class TenantBinding:
    """Relation field name plus the value that scopes a record to a tenant."""
    relation_field_name: str
    value: Dict[str, Any]

    def as_data(self) -> Dict[str, Any]:
        return {self.relation_field_name: self.value}


def tenant_connect(tenant_id: str) -> Dict[str, Any]:
    """Build the nested-write value that connects a record to a tenant."""
    return {"connect": {"id": tenant_id}}
