import logging
import re
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fitclub.core.config import settings
from fitclub.models.assignment import AssignmentStatus, WorkoutAssignment
from fitclub.models.workout import Workout
from fitclub.models.workout_log import WorkoutLog
from fitclub.schemas.workout import ExerciseData, LastPerformance, WorkoutPlan

logger = logging.getLogger(__name__)

DEFAULT_REPS = 10
DEFAULT_REST_SECONDS = 60


def parse_reps(reps: Optional[str]) -> int:
    """Повторы хранятся текстом ("8-12", "10 reps"): берём первое число."""
    match = re.search(r"\d+", str(reps or ""))
    return int(match.group()) if match else DEFAULT_REPS


def parse_rest_time(rest: Optional[str]) -> int:
    """Отдых хранится текстом ("90s", "2 min"): переводим в секунды."""
    text = str(rest or "")
    match = re.search(r"\d+", text)
    value = int(match.group()) if match else DEFAULT_REST_SECONDS
    if "min" in text.lower():
        return value * 60
    return value


def to_workout_plan(assignment: WorkoutAssignment) -> WorkoutPlan:
    workout = assignment.workout
    exercises = sorted(workout.exercises, key=lambda e: e.order_index)
    duration = workout.duration or 0
    return WorkoutPlan(
        assignment_id=assignment.id,
        workout_id=workout.id,
        name=workout.name,
        duration=duration,
        calories=round(duration * settings.CALORIES_PER_MINUTE),
        difficulty=workout.difficulty or "beginner",
        muscle_groups=[workout.body_part] if workout.body_part else [],
        exercises=[
            ExerciseData(
                id=e.id,
                name=e.name,
                sets=e.sets,
                reps=parse_reps(e.reps),
                weight=e.weight or 0,
                rest_time=parse_rest_time(e.rest),
                notes=e.notes,
                order_index=e.order_index,
                animation_url=e.animation_url,
            )
            for e in exercises
        ],
    )


class WorkoutRepository:
    """Данные тренировок участника: назначенный план, история подходов, завершение назначения."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def fetch_assigned_workout(self, member_id: int) -> Optional[WorkoutPlan]:
        result = await self.db.execute(
            select(WorkoutAssignment)
            .options(selectinload(WorkoutAssignment.workout).selectinload(Workout.exercises))
            .where(
                WorkoutAssignment.member_id == member_id,
                WorkoutAssignment.status == AssignmentStatus.active,
            )
            .order_by(WorkoutAssignment.assigned_at.desc())
            .limit(1)
        )
        assignment = result.scalars().first()
        if assignment is None or assignment.workout is None:
            return None
        return to_workout_plan(assignment)

    async def fetch_last_performance(
        self,
        member_id: int,
        exercise_ids: List[int],
    ) -> Dict[int, LastPerformance]:
        if not exercise_ids:
            return {}

        result = await self.db.execute(
            select(WorkoutLog)
            .where(
                WorkoutLog.member_id == member_id,
                WorkoutLog.exercise_id.in_(exercise_ids),
            )
            .order_by(WorkoutLog.completed_at.desc())
        )
        logs = result.scalars().all()

        latest: Dict[int, WorkoutLog] = {}
        sets_that_day: Dict[int, int] = {}
        for log in logs:
            if log.exercise_id not in latest:
                latest[log.exercise_id] = log
                sets_that_day[log.exercise_id] = 0
            if log.completed_at.date() == latest[log.exercise_id].completed_at.date():
                sets_that_day[log.exercise_id] += 1

        return {
            exercise_id: LastPerformance(
                sets=sets_that_day[exercise_id],
                reps=log.reps or 0,
                weight=log.weight or 0,
                date=log.completed_at,
            )
            for exercise_id, log in latest.items()
        }

    async def log_completed_set(
        self,
        member_id: int,
        workout_id: int,
        exercise_id: int,
        set_number: int,
        reps: int,
        weight: float,
        rpe: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> WorkoutLog:
        log = WorkoutLog(
            member_id=member_id,
            workout_id=workout_id,
            exercise_id=exercise_id,
            set_number=set_number,
            reps=reps,
            weight=weight,
            rpe=rpe,
            notes=notes,
            completed_at=datetime.utcnow(),
        )
        try:
            self.db.add(log)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return log

    async def mark_assignment_completed(self, assignment_id: int) -> bool:
        try:
            assignment = await self.db.get(WorkoutAssignment, assignment_id)
            if assignment is None:
                return False
            assignment.status = AssignmentStatus.completed
            assignment.completed_at = datetime.utcnow()
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return True
