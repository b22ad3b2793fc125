from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional
from tenantflow.analysis.types import EntityDefinition, FieldDescriptor, TenantConfig


class FieldModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    is_relation: bool = Field(False, alias="isRelation")
    related_entity: Optional[str] = Field(None, alias="relatedEntity", examples=["Company"])
    is_list: bool = Field(False, alias="isList")
    is_required: bool = Field(False, alias="isRequired")
    relation_name: Optional[str] = Field(None, alias="relationName")
    owned_foreign_keys: List[str] = Field(default_factory=list, alias="ownedForeignKeys",
                                          examples=[["companyId"]])

    def to_descriptor(self) -> FieldDescriptor:
        return FieldDescriptor(
            name=self.name,
            is_relation=self.is_relation or bool(self.related_entity),
            related_entity=self.related_entity,
            is_list=self.is_list,
            is_required=self.is_required,
            relation_name=self.relation_name,
            owned_foreign_keys=tuple(self.owned_foreign_keys),
        )


class EntityModel(BaseModel):
    name: str = Field(..., examples=["Todo"])
    fields: List[FieldModel] = []

    def to_definition(self) -> EntityDefinition:
        return EntityDefinition(
            name=self.name,
            fields=tuple(f.to_descriptor() for f in self.fields),
        )


class TenantConfigModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tenant_entity: str = Field(..., alias="tenantEntity", examples=["Company"])
    tenant_field: Optional[str] = Field("tenantId", alias="tenantField", examples=["companyId"])
    overrides: Dict[str, str] = {}
    exempt_entities: List[str] = Field(default_factory=list, alias="exemptEntities")

    def to_config(self) -> TenantConfig:
        return TenantConfig(
            tenant_entity=self.tenant_entity,
            tenant_field=self.tenant_field,
            overrides=dict(self.overrides),
            exempt_entities=frozenset(self.exempt_entities),
        )


class SchemaDocument(BaseModel):
    entities: List[EntityModel]
    tenant: Optional[TenantConfigModel] = None

    def to_definitions(self) -> List[EntityDefinition]:
        return [e.to_definition() for e in self.entities]
