from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import datetime


class ExerciseData(BaseModel):
    id: int
    name: str
    sets: int
    reps: int
    weight: float = 0
    rest_time: int = 60
    notes: Optional[str] = None
    order_index: int = 0
    animation_url: Optional[str] = None

    class Config:
        from_attributes = True


class WorkoutPlan(BaseModel):
    """Назначенная участнику тренировка в том виде, в каком её исполняет сессия."""
    assignment_id: int
    workout_id: int
    name: str
    duration: int = 0
    calories: int = 0
    difficulty: str = "beginner"
    muscle_groups: List[str] = []
    exercises: List[ExerciseData]


class LastPerformance(BaseModel):
    sets: int
    reps: int
    weight: float
    date: datetime


class TodayWorkoutResponse(BaseModel):
    workout: Optional[WorkoutPlan] = None


class LastPerformanceResponse(BaseModel):
    exercises: Dict[int, LastPerformance]
