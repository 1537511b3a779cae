import logging
from typing import Optional

from fitclub.core.config import settings
from fitclub.models.member import Member
from fitclub.repositories.workout_repository import WorkoutRepository
from fitclub.schemas.session import SessionPhase, SessionStateResponse
from fitclub.services.scheduler import AsyncioScheduler
from fitclub.services.session_events import SessionCompleted, SetCompleted
from fitclub.services.session_registry import ActiveSession, SessionRegistry, session_registry
from fitclub.services.session_runtime import SessionRuntime
from fitclub.services.session_summary import compare_with_last
from fitclub.services.voice_coach import UtteranceFeed, VoiceCoach
from fitclub.services.workout_session import WorkoutSessionController

logger = logging.getLogger(__name__)


class NoAssignedWorkoutError(Exception):
    pass


class SessionAlreadyActiveError(Exception):
    pass


class WorkoutSessionService:
    """
    Склейка контроллера сессии с данными участника.

    Сохранение подходов и завершение назначения выполняются оптимистично:
    состояние сессии уже продвинуто, ошибка БД превращается в уведомление
    для клиента и не откатывает сессию.
    """

    def __init__(self, repo: WorkoutRepository, registry: SessionRegistry = session_registry):
        self.repo = repo
        self.registry = registry

    def get_active(self, member_id: int) -> Optional[ActiveSession]:
        active = self.registry.get(member_id)
        if active is not None:
            self.registry.touch(active)
        return active

    async def start(self, member: Member) -> ActiveSession:
        # Место занимается до первого обращения к БД: параллельный старт получит 409
        if not self.registry.reserve(member.id):
            raise SessionAlreadyActiveError()
        try:
            return await self._start(member)
        finally:
            self.registry.release(member.id)

    async def _start(self, member: Member) -> ActiveSession:
        plan = await self.repo.fetch_assigned_workout(member.id)
        if plan is None or not any(e.sets > 0 for e in plan.exercises):
            raise NoAssignedWorkoutError()

        last_performance = await self.repo.fetch_last_performance(
            member.id, [e.id for e in plan.exercises]
        )

        feed = UtteranceFeed(
            rate=settings.VOICE_RATE,
            words_per_second=settings.VOICE_WORDS_PER_SECOND,
        )
        controller = WorkoutSessionController(
            plan,
            voice=VoiceCoach(feed),
            scheduler=AsyncioScheduler(),
            beep=feed.beep,
        )
        runtime = SessionRuntime(controller)
        active = ActiveSession(member.id, controller, runtime, feed, last_performance)
        if not self.registry.add(active):
            active.close()
            raise SessionAlreadyActiveError()

        controller.start_session()
        logger.info(f"Участник {member.id} начал тренировку {plan.workout_id} ({plan.name})")
        return active

    async def flush(self, active: ActiveSession) -> None:
        """Отправить в БД выполненные подходы и факт завершения тренировки."""
        plan = active.controller.plan
        for event in active.drain_outbox():
            if isinstance(event, SetCompleted):
                try:
                    await self.repo.log_completed_set(
                        member_id=active.member_id,
                        workout_id=plan.workout_id,
                        exercise_id=event.exercise_id,
                        set_number=event.set_number,
                        reps=event.reps,
                        weight=event.weight,
                        rpe=event.rpe,
                        notes=event.notes,
                    )
                except Exception as e:
                    logger.error(f"Ошибка сохранения подхода {event.set_number} упражнения {event.exercise_id}: {e}")
                    active.notices.append(f"Не удалось сохранить подход {event.set_number}. Тренировка продолжается.")
            elif isinstance(event, SessionCompleted):
                try:
                    await self.repo.mark_assignment_completed(plan.assignment_id)
                    logger.info(f"Участник {active.member_id} завершил тренировку {plan.workout_id}")
                except Exception as e:
                    logger.error(f"Ошибка завершения назначения {plan.assignment_id}: {e}")
                    active.notices.append("Не удалось отметить тренировку выполненной.")

    def finish(self, member_id: int) -> bool:
        """Закрыть завершённую сессию после экрана итогов."""
        active = self.registry.get(member_id)
        if active is None or active.controller.phase != SessionPhase.completed:
            return False
        active.controller.reset()
        return self.registry.discard(member_id)

    def abandon(self, member_id: int) -> bool:
        return self.registry.discard(member_id)

    def describe(self, active: ActiveSession, accepted: bool = True) -> SessionStateResponse:
        controller = active.controller
        exercise = controller.current_exercise
        comparison = None
        if exercise is not None:
            comparison = compare_with_last(active.last_performance.get(exercise.id), exercise.weight)

        announcements = active.feed.since(active.delivered_seq)
        active.delivered_seq = active.feed.last_seq

        return SessionStateResponse(
            accepted=accepted,
            phase=controller.phase,
            workout_name=controller.plan.name,
            cursor=controller.cursor,
            pending_set_index=controller.pending_set_index,
            rest=controller.rest_timer.state,
            exercises=controller.exercises,
            elapsed_seconds=controller.elapsed_seconds,
            total_volume=controller.total_volume,
            completed_exercises=controller.completed_exercise_count,
            progress_percent=controller.progress_percent,
            voice_enabled=controller.voice.enabled,
            notes=controller.notes,
            comparison=comparison,
            announcements=announcements,
            notices=active.drain_notices(),
        )
