from fastapi import APIRouter

from grant_management.api.consent_routes import router as consent_router
from grant_management.api.evaluation_routes import router as evaluation_router
from grant_management.api.grant_routes import router as grant_router
from grant_management.api.oauth_routes import router as oauth_router

api_router = APIRouter()

api_router.include_router(oauth_router)
api_router.include_router(consent_router)
api_router.include_router(evaluation_router)
api_router.include_router(grant_router)

__all__ = ["api_router"]
