import logging
import time
from typing import Callable, Dict, List, Optional, Set

from fitclub.schemas.workout import LastPerformance
from fitclub.services.session_events import SessionCompleted, SessionEvent, SetCompleted
from fitclub.services.session_runtime import SessionRuntime
from fitclub.services.voice_coach import UtteranceFeed
from fitclub.services.workout_session import WorkoutSessionController

logger = logging.getLogger(__name__)


class ActiveSession:
    """Живая сессия участника вместе с таймерами, лентой фраз и исходящими событиями."""

    def __init__(
        self,
        member_id: int,
        controller: WorkoutSessionController,
        runtime: SessionRuntime,
        feed: UtteranceFeed,
        last_performance: Optional[Dict[int, LastPerformance]] = None,
    ):
        self.member_id = member_id
        self.controller = controller
        self.runtime = runtime
        self.feed = feed
        self.last_performance = last_performance or {}
        self.notices: List[str] = []
        self.delivered_seq = 0
        self.last_seen = 0.0
        self._outbox: List[SessionEvent] = []
        controller.subscribe(self._collect)

    def _collect(self, event: SessionEvent) -> None:
        # Наружу уходят только события, которые надо сохранить в БД
        if isinstance(event, (SetCompleted, SessionCompleted)):
            self._outbox.append(event)

    def drain_outbox(self) -> List[SessionEvent]:
        events, self._outbox = self._outbox, []
        return events

    def drain_notices(self) -> List[str]:
        notices, self.notices = self.notices, []
        return notices

    def close(self) -> None:
        self.runtime.close()


class SessionRegistry:
    """
    Одна активная сессия на участника.

    Старт сессии асинхронный (план и история читаются из БД), поэтому место
    участника сначала резервируется через reserve(), а add() никогда не
    заменяет уже живую сессию. Сессии, к которым давно не обращались,
    закрываются через evict_idle().
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._sessions: Dict[int, ActiveSession] = {}
        self._reserved: Set[int] = set()

    def get(self, member_id: int) -> Optional[ActiveSession]:
        return self._sessions.get(member_id)

    def touch(self, session: ActiveSession) -> None:
        session.last_seen = self._clock()

    def reserve(self, member_id: int) -> bool:
        """Занять место участника на время старта. False, если оно уже занято."""
        if member_id in self._sessions or member_id in self._reserved:
            return False
        self._reserved.add(member_id)
        return True

    def release(self, member_id: int) -> None:
        self._reserved.discard(member_id)

    def add(self, session: ActiveSession) -> bool:
        current = self._sessions.get(session.member_id)
        if current is not None and current is not session:
            return False
        self._reserved.discard(session.member_id)
        self.touch(session)
        self._sessions[session.member_id] = session
        return True

    def discard(self, member_id: int) -> bool:
        session = self._sessions.pop(member_id, None)
        if session is None:
            return False
        session.close()
        logger.info(f"Сессия участника {member_id} закрыта")
        return True

    def evict_idle(self, max_idle_seconds: float) -> List[int]:
        now = self._clock()
        stale = [
            member_id for member_id, session in self._sessions.items()
            if now - session.last_seen > max_idle_seconds
        ]
        for member_id in stale:
            logger.warning(f"Сессия участника {member_id} закрыта по неактивности")
            self.discard(member_id)
        return stale

    def close_all(self) -> None:
        for member_id in list(self._sessions):
            self.discard(member_id)
        self._reserved.clear()

    def __len__(self) -> int:
        return len(self._sessions)


session_registry = SessionRegistry()
