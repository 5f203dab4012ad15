# Import all routes
from .auth import router as auth_router
from .documents import router as documents_router
from .files import router as files_router
from .policies import router as policies_router
from .rids import router as rids_router
from .trainings import router as trainings_router
from .personnel import router as personnel_router
from .analytics import router as analytics_router
from .admin import router as admin_router
from .health import router as health_router

# rids must come before personnel so /api/personnel/rids is not read as a personnel id
routers = [
    auth_router,
    documents_router,
    files_router,
    policies_router,
    rids_router,
    trainings_router,
    personnel_router,
    analytics_router,
    admin_router,
    health_router,
]

__all__ = ["routers"]
