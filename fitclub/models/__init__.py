from fitclub.models.member import Member
from fitclub.models.workout import Workout, WorkoutExercise
from fitclub.models.assignment import WorkoutAssignment, AssignmentStatus
from fitclub.models.workout_log import WorkoutLog

__all__ = [
    "Member",
    "Workout", "WorkoutExercise",
    "WorkoutAssignment", "AssignmentStatus",
    "WorkoutLog",
]
