import logging

from fitclub.services.scheduler import Ticker
from fitclub.services.session_events import (
    RestStarted,
    RestStopped,
    SessionCompleted,
    SessionEvent,
    SessionReset,
    SessionStarted,
)
from fitclub.services.workout_session import WorkoutSessionController

logger = logging.getLogger(__name__)


class SessionRuntime:
    """
    Таймеры живой сессии: секундомер тренировки и отсчёт отдыха.

    Тикеры запускаются и останавливаются по событиям контроллера.
    close() обязателен на любом выходе из сессии (завершение, отказ, сброс),
    иначе задачи продолжат тикать после удаления состояния.
    """

    def __init__(self, controller: WorkoutSessionController, tick_interval: float = 1.0):
        self.controller = controller
        self.elapsed_ticker = Ticker(controller.tick, interval=tick_interval, name="elapsed")
        self.rest_ticker = Ticker(controller.tick_rest, interval=tick_interval, name="rest")
        self.closed = False
        controller.subscribe(self._on_event)

    def _on_event(self, event: SessionEvent) -> None:
        if self.closed:
            return
        if isinstance(event, SessionStarted):
            self.elapsed_ticker.start()
        elif isinstance(event, RestStarted):
            self.rest_ticker.restart()
        elif isinstance(event, RestStopped):
            self.rest_ticker.stop()
        elif isinstance(event, (SessionCompleted, SessionReset)):
            self.elapsed_ticker.stop()
            self.rest_ticker.stop()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.elapsed_ticker.stop()
        self.rest_ticker.stop()
        self.controller.close()
        logger.debug("Таймеры сессии остановлены")
