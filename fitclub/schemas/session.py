from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from enum import Enum

from fitclub.core.config import settings


class SessionPhase(str, Enum):
    not_started = "not_started"
    in_progress = "in_progress"
    awaiting_rpe = "awaiting_rpe"
    resting = "resting"
    completed = "completed"


class SetState(BaseModel):
    set_number: int
    reps: int
    weight: float
    rpe: Optional[int] = None
    completed: bool = False


class ExerciseState(BaseModel):
    id: int
    name: str
    planned_sets: int
    planned_reps: int
    weight: float
    rest_seconds: int
    completed: bool = False
    notes: Optional[str] = None
    animation_url: Optional[str] = None
    sets: List[SetState] = []

    @property
    def completed_sets(self) -> int:
        return sum(1 for s in self.sets if s.completed)


class SessionCursor(BaseModel):
    exercise_index: int = 0
    set_number: int = 1


class RestState(BaseModel):
    initial_seconds: int = 0
    remaining_seconds: int = 0
    running: bool = False
    sound_enabled: bool = True


class Announcement(BaseModel):
    seq: int
    kind: Literal["speech", "beep"] = "speech"
    text: str = ""
    priority: bool = False
    at: float
    duration: float
    frequency: Optional[int] = None


class ExerciseComparison(BaseModel):
    last_sets: int
    last_reps: int
    last_weight: float
    weight_diff: float
    trend: Literal["up", "down", "flat"]


class SessionStateResponse(BaseModel):
    accepted: bool = True
    phase: SessionPhase
    workout_name: str
    cursor: SessionCursor
    pending_set_index: Optional[int] = None
    rest: RestState
    exercises: List[ExerciseState]
    elapsed_seconds: int
    total_volume: float
    completed_exercises: int
    progress_percent: float
    voice_enabled: bool
    notes: str = ""
    comparison: Optional[ExerciseComparison] = None
    announcements: List[Announcement] = []
    notices: List[str] = []


class RPEInput(BaseModel):
    rpe: int = Field(ge=1, le=10, description="How hard was that set? (1-10)")


class WeightAdjustInput(BaseModel):
    delta: float = Field(default=settings.WEIGHT_STEP, description="Weight change in kilograms, e.g. 2.5 or -2.5")


class NavigateInput(BaseModel):
    direction: Literal[-1, 1]


class RestAdjustInput(BaseModel):
    seconds: int = Field(default=settings.REST_ADJUST_STEP, description="Seconds to add or remove, e.g. 15 or -15")


class RestSoundInput(BaseModel):
    enabled: bool


class NotesInput(BaseModel):
    notes: str = Field(default="", max_length=2000)


class VoiceToggleInput(BaseModel):
    enabled: bool


class RPEOption(BaseModel):
    value: int
    label: str


class PersonalRecord(BaseModel):
    exercise: str
    type: str
    value: str


class SessionSummary(BaseModel):
    workout_name: str
    total_time: int
    total_time_display: str
    total_volume: float
    total_volume_display: str
    total_sets: int
    completed_sets: int
    total_reps: int
    calories_burned: int
    personal_records: List[PersonalRecord]
