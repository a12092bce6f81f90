from fastapi import APIRouter

from incentives.api.hours import hours_router
from incentives.api.incentives import incentives_router, supervisor_router

api_router = APIRouter()
api_router.include_router(incentives_router)
api_router.include_router(supervisor_router)
api_router.include_router(hours_router)
