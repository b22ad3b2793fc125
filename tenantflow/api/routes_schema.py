from fastapi import APIRouter, HTTPException
from tenantflow.analysis.types import RelationshipInfo
from tenantflow.api.deps import SchemaContext
from tenantflow.core.config import settings
from tenantflow.core.errors import ConfigurationError, EntityNotFoundError
from tenantflow.schemas.entities import SchemaDocument
from tenantflow.schemas.mutations import AnalyzeResponse, EntityAnalysis, RelationshipOut

router = APIRouter(prefix="/schema")


def _relationship_out(info: RelationshipInfo) -> RelationshipOut:
    return RelationshipOut(
        field_name=info.field_name,
        related_entity=info.related_entity,
        kind=info.kind.value,
        is_required=info.is_required,
        is_owning_side=info.is_owning_side,
        foreign_keys=list(info.foreign_keys) if info.foreign_keys is not None else None,
        back_reference_field=info.back_reference_field,
    )


@router.post("/analyze", response_model=AnalyzeResponse)
def analyze_schema(document: SchemaDocument):
    try:
        context = SchemaContext.build(document, settings.tenant_config())
    except EntityNotFoundError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    unresolved = context.resolver.unresolved()
    entities = []
    for name, rels in context.graph.relationships.items():
        error = unresolved.get(name)
        entities.append(EntityAnalysis(
            entity=name,
            owns=[_relationship_out(r) for r in rels.owns],
            referenced_by=[_relationship_out(r) for r in rels.referenced_by],
            related_entities=sorted(rels.related_entities),
            relation_targets=context.graph.relation_targets.get(name, {}),
            tenant_relation=None if error else context.resolver.relation_for(name),
            error=str(error) if error else None,
        ))

    return AnalyzeResponse(
        entities=entities,
        tenant_relation_map=context.tenant_relations,
        unresolved={name: str(e) for name, e in unresolved.items()},
    )
