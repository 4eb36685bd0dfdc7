"""
Health API endpoints for Keyper Service.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from ..config import get_config
from ..service import get_key_service
from ..version import GIT_COMMIT, __version__

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    commit: str
    directory: Dict[str, int]
    refresher: Dict[str, Any]
    last_refresh_ok: Optional[bool] = None


@router.get("/health", response_model=HealthResponse)
async def health():
    """Health check with directory sizes and the last refresh pass."""
    status = get_key_service().get_status()
    last = status["refresher"]["last_refresh"]

    return HealthResponse(
        status="healthy",
        service="keyper-service",
        version=__version__,
        commit=GIT_COMMIT,
        directory=status["directory"],
        refresher=status["refresher"],
        last_refresh_ok=(last["completed"] and not last["remote_failed"]) if last else None,
    )


@router.get("/api/v1/hello", response_class=PlainTextResponse)
async def hello():
    """Connectivity check used by setup tooling."""
    return f"Successfully connected to keyper ('{GIT_COMMIT}')\n"


@router.get("/")
async def root():
    """Root endpoint with service information."""
    config = get_config()

    return {
        "service": "Keyper Service",
        "version": __version__,
        "description": "SSH public key distribution for AuthorizedKeysCommand",
        "url": config.url,
        "endpoints": {
            "keys": "/api/v1/keys/{host}/{user}",
            "hello": "/api/v1/hello",
            "auth_script": "/auth.sh",
            "setup_script": "/setup.sh",
            "health": "/health",
            "metrics": "/metrics",
        },
    }
