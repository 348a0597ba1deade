from fastapi import APIRouter

from miniapp_sso.api.health import router as health_router
from miniapp_sso.api.miniapp import router as miniapp_router
from miniapp_sso.api.sso import router as sso_router

api_router = APIRouter()

# Include sub-routers
api_router.include_router(health_router, tags=["health"])
api_router.include_router(miniapp_router)
api_router.include_router(sso_router)
