import logging
from fastapi import APIRouter, Depends, HTTPException
from tenantflow.analysis.policy import evaluate_tenant_policy
from tenantflow.analysis.tenant import extract_tenant_id
from tenantflow.analysis.types import tenant_connect
from tenantflow.api.deps import SchemaContext, get_schema_context
from tenantflow.core.errors import ConfigurationError, EntityNotFoundError
from tenantflow.schemas.mutations import MergeRequest, MergeResponse, PolicyRequest, PolicyResponse

log = logging.getLogger(__name__)

router = APIRouter(prefix="/mutations")

@router.post("/merge", response_model=MergeResponse)
def merge_mutation(req: MergeRequest, context: SchemaContext = Depends(get_schema_context)):
    tenant_id = req.tenant_id or extract_tenant_id(req.data, context.tenant_relations.values())
    if not tenant_id:
        raise HTTPException(status_code=400, detail="tenant_id is required")

    try:
        data = context.merger.merge(req.data, tenant_connect(tenant_id), req.entity)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConfigurationError as e:
        log.warning("Merge rejected: %s", e, extra={"entity": e.entity or req.entity, "stage": "merge"})
        raise HTTPException(status_code=400, detail=str(e))

    return MergeResponse(entity=req.entity, tenant_id=tenant_id, data=data)

@router.post("/policy", response_model=PolicyResponse)
def evaluate_policy(req: PolicyRequest, context: SchemaContext = Depends(get_schema_context)):
    try:
        result = evaluate_tenant_policy(req.action, req.entity, req.tenant_id, context.graph, context.resolver)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return PolicyResponse(ok=result.ok, message=result.message, where=result.where, data=result.data)
