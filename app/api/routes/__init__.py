from __future__ import annotations

from app.api.routes.accounts import build_account_router
from app.api.routes.authentication import router as authentication_router
from app.api.routes.health import router as health_router

__all__ = ["authentication_router", "build_account_router", "health_router"]
