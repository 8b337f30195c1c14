"""API router configuration."""

from fastapi import APIRouter

from src.api.endpoints import appraisals, cycles, navigation, reports

# Create main API router
api_router = APIRouter()

api_router.include_router(
    appraisals.router,
    prefix="/appraisals",
    tags=["Appraisals"],
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Appraisal not found"},
        409: {"description": "Invalid transition, invalid state or version conflict"},
        422: {"description": "Validation Error"},
    },
)

api_router.include_router(
    cycles.router,
    prefix="/cycles",
    tags=["Appraisal Cycles"],
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Cycle not found"},
        409: {"description": "Academic year already has a cycle"},
        422: {"description": "Validation Error"},
    },
)

api_router.include_router(
    reports.router,
    prefix="/reports",
    tags=["Reports"],
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Cycle not found"},
    },
)

api_router.include_router(
    navigation.router,
    prefix="/navigation",
    tags=["Navigation"],
    responses={
        401: {"description": "Unauthorized"},
    },
)


# Export for main.py
def get_api_router():
    """Get configured API router with all endpoints."""
    return api_router
