import logging
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI
from tenantflow.api.deps import SchemaContext
from tenantflow.api.routes import router as api_router
from tenantflow.core.config import settings
from tenantflow.core.logging import configure_logging
from tenantflow.generators.tenant_gen.loader import load_schema_document

configure_logging(settings.log_level)
log = logging.getLogger(__name__)


def load_schema_context() -> SchemaContext | None:
    """Build the shared schema context from the configured schema file, if any."""
    if not settings.schema_path:
        log.info("No schema_path configured; merge endpoints disabled until a schema is loaded",
                 extra={"stage": "startup"})
        return None
    document = load_schema_document(Path(settings.schema_path))
    context = SchemaContext.build(document, settings.tenant_config())
    for entity_name, error in context.resolver.unresolved().items():
        log.warning("Tenant relation unresolved: %s", error,
                    extra={"entity": entity_name, "stage": "startup"})
    return context


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    log.info("Starting API server...", extra={"stage": "startup"})
    try:
        app.state.schema_context = load_schema_context()
        log.info("API server startup complete", extra={"stage": "startup"})
    except Exception as e:
        log.error("API startup failed: %s", e, exc_info=True, extra={"stage": "startup"})
        raise
    yield
    # Shutdown
    log.info("Shutting down API server...", extra={"stage": "shutdown"})


app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    lifespan=lifespan
)
app.include_router(api_router, prefix="/v1")
