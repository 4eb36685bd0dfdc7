"""
Keyper Service API endpoints.
"""

from .keys import router as keys_router
from .health import router as health_router
from .scripts import router as scripts_router
from .metrics import router as metrics_router

__all__ = ["keys_router", "health_router", "scripts_router", "metrics_router"]
