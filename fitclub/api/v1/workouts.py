from fastapi import APIRouter, Depends

from fitclub.core.dependencies import get_current_member, get_workout_repository
from fitclub.models.member import Member
from fitclub.repositories.workout_repository import WorkoutRepository
from fitclub.schemas.workout import LastPerformanceResponse, TodayWorkoutResponse

router = APIRouter()


@router.get("/today", response_model=TodayWorkoutResponse)
async def get_today_workout(
    current_member: Member = Depends(get_current_member),
    repo: WorkoutRepository = Depends(get_workout_repository),
):
    workout = await repo.fetch_assigned_workout(current_member.id)
    return TodayWorkoutResponse(workout=workout)


@router.get("/last-performance", response_model=LastPerformanceResponse)
async def get_last_performance(
    current_member: Member = Depends(get_current_member),
    repo: WorkoutRepository = Depends(get_workout_repository),
):
    workout = await repo.fetch_assigned_workout(current_member.id)
    if workout is None:
        return LastPerformanceResponse(exercises={})

    exercises = await repo.fetch_last_performance(
        current_member.id, [e.id for e in workout.exercises]
    )
    return LastPerformanceResponse(exercises=exercises)
