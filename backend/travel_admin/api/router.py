from fastapi import APIRouter

from ..admin import router as admin_router
from ..routers import auth

router = APIRouter(prefix="/api")

for _router in [auth.router, admin_router]:
    router.include_router(_router)
