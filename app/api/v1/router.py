"""API v1 router: aggregates endpoint routers under /api/v1."""

from fastapi import APIRouter

from app.api.v1.endpoints import authorization, health, permissions, roles, user_roles

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(roles.router, prefix="/roles", tags=["roles"])
api_router.include_router(permissions.router, prefix="/permissions", tags=["permissions"])
api_router.include_router(user_roles.router, prefix="/users", tags=["user-roles"])
api_router.include_router(
    authorization.router, prefix="/authorization", tags=["authorization"]
)
