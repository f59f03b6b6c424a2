"""Master API router: mounts all sub-routers."""

from __future__ import annotations

from fastapi import APIRouter

from wallgen.api.generations import router as generations_router
from wallgen.api.system import router as system_router

api_router = APIRouter(prefix="/api", redirect_slashes=False)

api_router.include_router(generations_router, prefix="/generations", tags=["Generation"])
api_router.include_router(system_router, prefix="/system", tags=["System"])
