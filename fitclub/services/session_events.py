from typing import Optional

from pydantic import BaseModel


class SessionEvent(BaseModel):
    pass


class SessionStarted(SessionEvent):
    pass


class RestStarted(SessionEvent):
    seconds: int


class RestStopped(SessionEvent):
    skipped: bool = False


class SetCompleted(SessionEvent):
    exercise_index: int
    exercise_id: int
    set_number: int
    reps: int
    weight: float
    rpe: int
    notes: Optional[str] = None


class SessionCompleted(SessionEvent):
    pass


class SessionReset(SessionEvent):
    pass
