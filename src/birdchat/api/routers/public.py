"""Public routes."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def health(request: Request) -> dict:
    """Health check. Reports which Conversations API endpoint is in use."""
    sandbox = bool(request.app.state.config.is_sandbox_enabled)
    return {"status": "ok", "sandbox": sandbox}
