"""
Контроллер тренировочной сессии.

Конечный автомат:

    not_started -> in_progress -> awaiting_rpe -> resting -> in_progress -> ... -> completed

Все переходы синхронные и вызываются из обработчиков событий (запросы клиента,
тики таймеров). Недопустимый переход не бросает исключение: метод возвращает
False и состояние не меняется.
"""

import logging
from typing import Callable, List, Optional

from fitclub.core.config import settings
from fitclub.schemas.session import ExerciseState, SessionCursor, SessionPhase, SetState
from fitclub.schemas.workout import WorkoutPlan
from fitclub.services.rest_timer import RestTimer
from fitclub.services.scheduler import AsyncioScheduler, ScheduledCall, Scheduler
from fitclub.services.session_events import (
    RestStarted,
    RestStopped,
    SessionCompleted,
    SessionEvent,
    SessionReset,
    SessionStarted,
    SetCompleted,
)
from fitclub.services.voice_coach import VoiceCoach

logger = logging.getLogger(__name__)

ACTIVE_PHASES = (SessionPhase.in_progress, SessionPhase.awaiting_rpe, SessionPhase.resting)
# Фазы, в которых разрешены навигация и правка веса (RPE-окно всё блокирует)
NAVIGABLE_PHASES = (SessionPhase.in_progress, SessionPhase.resting)

RPE_MIN = 1
RPE_MAX = 10


def build_exercise_states(plan: WorkoutPlan) -> List[ExerciseState]:
    """
    Скопировать план в состояние сессии, сразу создав все подходы.

    Упражнение без подходов считается выполненным с самого начала,
    иначе тренировку нельзя было бы завершить.
    """
    states = []
    for e in plan.exercises:
        sets = [SetState(set_number=i + 1, reps=e.reps, weight=e.weight) for i in range(max(0, e.sets))]
        states.append(ExerciseState(
            id=e.id,
            name=e.name,
            planned_sets=len(sets),
            planned_reps=e.reps,
            weight=e.weight,
            rest_seconds=e.rest_time,
            completed=not sets,
            notes=e.notes,
            animation_url=e.animation_url,
            sets=sets,
        ))
    return states


class WorkoutSessionController:
    def __init__(
        self,
        plan: WorkoutPlan,
        voice: Optional[VoiceCoach] = None,
        scheduler: Optional[Scheduler] = None,
        beep: Optional[Callable[[int], None]] = None,
        start_announce_delay: float = settings.START_ANNOUNCE_DELAY,
        next_announce_delay: float = settings.NEXT_EXERCISE_ANNOUNCE_DELAY,
    ):
        self.plan = plan
        self.voice = voice or VoiceCoach()
        self.scheduler = scheduler or AsyncioScheduler()
        self.start_announce_delay = start_announce_delay
        self.next_announce_delay = next_announce_delay

        self.exercises = build_exercise_states(plan)
        self.phase = SessionPhase.not_started
        self.cursor = SessionCursor()
        self.pending_set_index: Optional[int] = None
        self.elapsed_seconds = 0
        self.notes = ""

        self.rest_timer = RestTimer(
            on_complete=self._on_rest_complete,
            on_countdown=self.voice.announce_rest_countdown,
            beep=beep,
        )
        self._listeners: List[Callable[[SessionEvent], None]] = []
        self._pending_calls: List[ScheduledCall] = []

    # ------------------------------------------------------------------
    # Состояние
    # ------------------------------------------------------------------

    @property
    def current_exercise(self) -> Optional[ExerciseState]:
        if 0 <= self.cursor.exercise_index < len(self.exercises):
            return self.exercises[self.cursor.exercise_index]
        return None

    @property
    def current_set(self) -> Optional[SetState]:
        exercise = self.current_exercise
        if exercise is None:
            return None
        index = self.cursor.set_number - 1
        if 0 <= index < len(exercise.sets):
            return exercise.sets[index]
        return None

    @property
    def is_finished(self) -> bool:
        return bool(self.exercises) and all(e.completed for e in self.exercises)

    @property
    def total_volume(self) -> float:
        return sum(
            s.reps * s.weight
            for e in self.exercises
            for s in e.sets
            if s.completed
        )

    @property
    def completed_exercise_count(self) -> int:
        return sum(1 for e in self.exercises if e.completed)

    @property
    def progress_percent(self) -> float:
        if not self.exercises:
            return 0.0
        return self.completed_exercise_count / len(self.exercises) * 100

    def subscribe(self, listener: Callable[[SessionEvent], None]) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Переходы
    # ------------------------------------------------------------------

    def start_session(self) -> bool:
        if self.phase != SessionPhase.not_started:
            return self._reject("start_session", "сессия уже запущена")
        if self.is_finished or not self.exercises:
            return self._reject("start_session", "в плане нет подходов")

        self.phase = SessionPhase.in_progress
        self.cursor = SessionCursor(exercise_index=0, set_number=1)
        self._emit(SessionStarted())

        self.voice.announce_workout_start()
        first = self.exercises[0]
        self._schedule(
            self.start_announce_delay,
            lambda: self.voice.announce_exercise(first.name, first.planned_sets, first.planned_reps, first.weight),
        )
        return True

    def request_set_completion(self) -> bool:
        """Открыть RPE-окно для текущего подхода. Сам подход не меняется."""
        if self.phase != SessionPhase.in_progress:
            return self._reject("request_set_completion", f"фаза {self.phase.value}")
        current = self.current_set
        if current is None or current.completed:
            return self._reject("request_set_completion", "текущий подход уже выполнен")

        self.pending_set_index = self.cursor.set_number - 1
        self.phase = SessionPhase.awaiting_rpe
        return True

    def confirm_set_rpe(self, rpe: int) -> bool:
        if self.phase != SessionPhase.awaiting_rpe or self.pending_set_index is None:
            return self._reject("confirm_set_rpe", f"фаза {self.phase.value}")
        if isinstance(rpe, bool) or not isinstance(rpe, int) or not RPE_MIN <= rpe <= RPE_MAX:
            return self._reject("confirm_set_rpe", f"некорректный RPE {rpe!r}")

        exercise = self.current_exercise
        target = exercise.sets[self.pending_set_index]
        target.completed = True
        target.rpe = rpe
        exercise.completed = all(s.completed for s in exercise.sets)
        self.pending_set_index = None

        self.voice.announce_rpe(rpe)
        self._emit(SetCompleted(
            exercise_index=self.cursor.exercise_index,
            exercise_id=exercise.id,
            set_number=target.set_number,
            reps=target.reps,
            weight=target.weight,
            rpe=rpe,
            notes=self.notes or None,
        ))

        set_number = self.cursor.set_number
        if set_number < exercise.planned_sets:
            self.cursor.set_number += 1
            self.phase = SessionPhase.resting
            self.voice.announce_set_complete(set_number, exercise.planned_sets)
            self._emit(RestStarted(seconds=exercise.rest_seconds))
            self.rest_timer.start(exercise.rest_seconds)
            return True

        next_index = self.cursor.exercise_index + 1
        if self.is_finished:
            self.phase = SessionPhase.completed
            self.voice.announce_workout_complete()
            self._emit(SessionCompleted())
        elif next_index < len(self.exercises):
            nxt = self.exercises[next_index]
            self.cursor = SessionCursor(exercise_index=next_index, set_number=1)
            self.phase = SessionPhase.in_progress
            self.voice.announce_set_complete(set_number, exercise.planned_sets)
            self._schedule(
                self.next_announce_delay,
                lambda: self.voice.announce_exercise(nxt.name, nxt.planned_sets, nxt.planned_reps, nxt.weight),
            )
        else:
            # Последнее упражнение закрыто, но раньше что-то пропущено:
            # курсор встаёт за последний подход, пока участник не вернётся назад
            self.cursor.set_number = exercise.planned_sets + 1
            self.phase = SessionPhase.in_progress
            self.voice.announce_set_complete(set_number, exercise.planned_sets)
        return True

    def adjust_weight(self, delta: float) -> bool:
        """Изменить рабочий вес текущего упражнения для ещё не выполненных подходов начиная с текущего."""
        if self.phase not in NAVIGABLE_PHASES:
            return self._reject("adjust_weight", f"фаза {self.phase.value}")
        exercise = self.current_exercise
        new_weight = max(0.0, exercise.weight + delta)
        exercise.weight = new_weight
        for s in exercise.sets[self.cursor.set_number - 1:]:
            if not s.completed:
                s.weight = new_weight
        return True

    def navigate_exercise(self, direction: int) -> bool:
        if self.phase not in NAVIGABLE_PHASES:
            return self._reject("navigate_exercise", f"фаза {self.phase.value}")
        if direction not in (-1, 1):
            return self._reject("navigate_exercise", f"направление {direction!r}")
        new_index = self.cursor.exercise_index + direction
        if not 0 <= new_index < len(self.exercises):
            return self._reject("navigate_exercise", "выход за границы плана")
        self._move_to(new_index)
        return True

    def select_exercise(self, index: int) -> bool:
        """Переход из списка упражнений: только к невыполненному и не текущему."""
        if self.phase not in NAVIGABLE_PHASES:
            return self._reject("select_exercise", f"фаза {self.phase.value}")
        if not 0 <= index < len(self.exercises) or index == self.cursor.exercise_index:
            return self._reject("select_exercise", f"индекс {index}")
        if self.exercises[index].completed:
            return self._reject("select_exercise", "упражнение уже выполнено")
        self._move_to(index)
        return True

    def skip_rest(self) -> bool:
        if self.phase != SessionPhase.resting:
            return self._reject("skip_rest", f"фаза {self.phase.value}")
        return self.rest_timer.skip()

    def adjust_rest(self, seconds: int) -> bool:
        if self.phase != SessionPhase.resting:
            return self._reject("adjust_rest", f"фаза {self.phase.value}")
        return self.rest_timer.adjust(seconds)

    def set_rest_sound(self, enabled: bool) -> bool:
        self.rest_timer.sound_enabled = enabled
        return True

    def set_notes(self, notes: str) -> bool:
        self.notes = notes
        return True

    def tick(self) -> None:
        """Секундный тик общего времени: считается только пока сессия идёт."""
        if self.phase in ACTIVE_PHASES:
            self.elapsed_seconds += 1

    def tick_rest(self) -> None:
        if self.phase == SessionPhase.resting:
            self.rest_timer.tick()

    def reset(self) -> None:
        """Вернуться в not_started со свежей копией плана."""
        self.close()
        self.exercises = build_exercise_states(self.plan)
        self.phase = SessionPhase.not_started
        self.cursor = SessionCursor()
        self.pending_set_index = None
        self.elapsed_seconds = 0
        self.notes = ""
        self._emit(SessionReset())

    def close(self) -> None:
        """Отменить отложенные объявления и отдых. Состояние не меняется."""
        for call in self._pending_calls:
            call.cancel()
        self._pending_calls.clear()
        self.rest_timer.cancel()

    # ------------------------------------------------------------------
    # Внутреннее
    # ------------------------------------------------------------------

    def _move_to(self, index: int) -> None:
        # Курсор всегда встаёт на подход 1, даже если он уже выполнен:
        # у частично сделанного упражнения запрос подхода тогда отклоняется,
        # и участнику остаётся только уйти навигацией дальше.
        if self.phase == SessionPhase.resting:
            self.rest_timer.cancel()
            self._emit(RestStopped(skipped=True))
        self.cursor = SessionCursor(exercise_index=index, set_number=1)
        self.phase = SessionPhase.in_progress

    def _on_rest_complete(self, skipped: bool) -> None:
        if self.phase != SessionPhase.resting:
            return
        self.phase = SessionPhase.in_progress
        self._emit(RestStopped(skipped=skipped))
        if not skipped:
            self.voice.announce_rest_complete()

    def _schedule(self, delay: float, callback: Callable[[], None]) -> None:
        self._pending_calls.append(self.scheduler.call_later(delay, callback))

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def _reject(self, operation: str, reason: str) -> bool:
        logger.debug(f"{operation} отклонён: {reason}")
        return False
