from fastapi import APIRouter
from app.api.routes_health import router as health_router
from app.api.routes_projects import router as projects_router
from app.api.routes_components import router as components_router
from app.api.routes_code import router as code_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(projects_router, tags=["projects"])
router.include_router(components_router, tags=["components"])
router.include_router(code_router, tags=["code"])
