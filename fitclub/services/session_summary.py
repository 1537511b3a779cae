from typing import Dict, List, Optional

from fitclub.schemas.session import ExerciseComparison, PersonalRecord, RPEOption, SessionSummary
from fitclub.schemas.workout import LastPerformance
from fitclub.services.voice_coach import format_weight
from fitclub.services.workout_session import WorkoutSessionController

RPE_LABELS = {
    1: "Very Easy",
    2: "Easy",
    3: "Light",
    4: "Moderate",
    5: "Somewhat Hard",
    6: "Hard",
    7: "Very Hard",
    8: "Extremely Hard",
    9: "Max Effort",
    10: "Absolute Max",
}


def rpe_scale() -> List[RPEOption]:
    return [RPEOption(value=value, label=label) for value, label in RPE_LABELS.items()]


def format_time(seconds: int) -> str:
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins}:{secs:02d}"


def format_volume(volume: float) -> str:
    if volume >= 1000:
        return f"{volume / 1000:.1f}k"
    return format_weight(volume)


def compare_with_last(last: Optional[LastPerformance], current_weight: float) -> Optional[ExerciseComparison]:
    """Сравнение текущего рабочего веса с последней записью по упражнению."""
    if last is None:
        return None
    diff = current_weight - last.weight
    trend = "up" if diff > 0 else "down" if diff < 0 else "flat"
    return ExerciseComparison(
        last_sets=last.sets,
        last_reps=last.reps,
        last_weight=last.weight,
        weight_diff=diff,
        trend=trend,
    )


def personal_records(
    controller: WorkoutSessionController,
    last_performance: Dict[int, LastPerformance],
) -> List[PersonalRecord]:
    records = []
    for exercise in controller.exercises:
        last = last_performance.get(exercise.id)
        if last and exercise.weight > last.weight:
            records.append(PersonalRecord(
                exercise=exercise.name,
                type="weight",
                value=f"{format_weight(exercise.weight)}kg (+{format_weight(exercise.weight - last.weight)}kg)",
            ))
    return records


def build_summary(
    controller: WorkoutSessionController,
    last_performance: Dict[int, LastPerformance],
) -> SessionSummary:
    completed_sets = [s for e in controller.exercises for s in e.sets if s.completed]
    total_volume = controller.total_volume

    return SessionSummary(
        workout_name=controller.plan.name,
        total_time=controller.elapsed_seconds,
        total_time_display=format_time(controller.elapsed_seconds),
        total_volume=total_volume,
        total_volume_display=f"{format_volume(total_volume)}kg",
        total_sets=sum(e.planned_sets for e in controller.exercises),
        completed_sets=len(completed_sets),
        total_reps=sum(s.reps for s in completed_sets),
        calories_burned=controller.plan.calories,
        personal_records=personal_records(controller, last_performance),
    )
