from app.routes.health import router as health_router
from app.routes.auth import router as auth_router
from app.routes.invoices import router as invoices_router

__all__ = ["health_router", "auth_router", "invoices_router"]
