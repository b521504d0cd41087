from fastapi import APIRouter
from fieldvisit.api.v1.routes import (
    auth,
    visits,
    users,
    audit,
    uploads,
    geocode,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(visits.router, prefix="/visits", tags=["visits"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(audit.router, prefix="/audit", tags=["audit"])
api_router.include_router(uploads.router, prefix="/uploads", tags=["uploads"])
api_router.include_router(geocode.router, prefix="/geocode", tags=["geocode"])
