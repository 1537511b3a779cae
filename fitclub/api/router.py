from fastapi import APIRouter
from fitclub.api.v1.workouts import router as workouts_router
from fitclub.api.v1.session import router as session_router

api_router = APIRouter()

api_router.include_router(workouts_router, prefix="/workouts", tags=["workouts"])
api_router.include_router(session_router, prefix="/session", tags=["session"])
