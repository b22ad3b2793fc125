from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from tenantflow.analysis.policy import PolicyAction


class MergeRequest(BaseModel):
    entity: str = Field(..., examples=["Todo"])
    data: Dict[str, Any] = Field(..., examples=[{"title": "My Todo", "tags": {"create": [{"name": "a"}]}}])
    tenant_id: Optional[str] = Field(None, examples=["c1"])


class MergeResponse(BaseModel):
    entity: str
    tenant_id: str
    data: Dict[str, Any]


class PolicyRequest(BaseModel):
    entity: str = Field(..., examples=["Todo"])
    action: PolicyAction
    tenant_id: Optional[str] = None


class PolicyResponse(BaseModel):
    ok: bool
    message: Optional[str] = None
    where: Dict[str, Any] = {}
    data: Dict[str, Any] = {}


class RelationshipOut(BaseModel):
    field_name: str
    related_entity: str
    kind: str
    is_required: bool
    is_owning_side: bool
    foreign_keys: Optional[List[str]] = None
    back_reference_field: Optional[str] = None


class EntityAnalysis(BaseModel):
    entity: str
    owns: List[RelationshipOut]
    referenced_by: List[RelationshipOut]
    related_entities: List[str]
    relation_targets: Dict[str, str] = {}
    tenant_relation: Optional[str] = None
    error: Optional[str] = None


class AnalyzeResponse(BaseModel):
    entities: List[EntityAnalysis]
    tenant_relation_map: Dict[str, str] = {}
    unresolved: Dict[str, str] = {}
