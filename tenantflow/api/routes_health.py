from fastapi import APIRouter, Request

router = APIRouter()

@router.get("/health")
def health(request: Request):
    return {
        "status": "ok",
        "schema_loaded": getattr(request.app.state, "schema_context", None) is not None,
    }
