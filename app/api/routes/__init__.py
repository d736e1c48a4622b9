from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.mail import router as mail_router

__all__ = ["health_router", "mail_router"]
