from fastapi import APIRouter
from tenantflow.api.routes_health import router as health_router
from tenantflow.api.routes_schema import router as schema_router
from tenantflow.api.routes_mutations import router as mutations_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(schema_router, tags=["schema"])
router.include_router(mutations_router, tags=["mutations"])
