import logging
from typing import Callable, Optional

from fitclub.schemas.session import RestState

logger = logging.getLogger(__name__)

VOICE_COUNTDOWN_SECONDS = (10, 5, 3, 2, 1)
BEEP_SECONDS = (10, 5)
BEEP_LOW_HZ = 440
BEEP_HIGH_HZ = 880


class RestTimer:
    """
    Обратный отсчёт отдыха между подходами.

    Таймер ничего не планирует сам: каждую секунду его двигает tick()
    (в рантайме это делает 1 Гц тикер). on_complete(skipped) вызывается
    ровно один раз на каждый запущенный отсчёт. Голос и звук работают
    по принципу best-effort: их ошибки не влияют на отсчёт.
    """

    def __init__(
        self,
        on_complete: Callable[[bool], None],
        on_countdown: Optional[Callable[[int], None]] = None,
        beep: Optional[Callable[[int], None]] = None,
        sound_enabled: bool = True,
    ):
        self.on_complete = on_complete
        self.on_countdown = on_countdown
        self.beep = beep
        self.sound_enabled = sound_enabled
        self.initial_seconds = 0
        self.remaining_seconds = 0
        self.running = False
        self._fired = True

    @property
    def state(self) -> RestState:
        return RestState(
            initial_seconds=self.initial_seconds,
            remaining_seconds=self.remaining_seconds,
            running=self.running,
            sound_enabled=self.sound_enabled,
        )

    def start(self, seconds: int) -> None:
        # Новый отсчёт вытесняет предыдущий
        self.initial_seconds = max(0, int(seconds))
        self.remaining_seconds = self.initial_seconds
        self.running = True
        self._fired = False
        if self.remaining_seconds == 0:
            self._finish(skipped=False)
        else:
            self._countdown(self.remaining_seconds)

    def tick(self) -> None:
        if not self.running:
            return
        self.remaining_seconds = max(0, self.remaining_seconds - 1)
        if self.remaining_seconds == 0:
            self._finish(skipped=False)
        else:
            self._countdown(self.remaining_seconds)

    def skip(self) -> bool:
        if not self.running:
            return False
        self._finish(skipped=True)
        return True

    def adjust(self, seconds: int) -> bool:
        if not self.running:
            return False
        self.remaining_seconds = max(0, self.remaining_seconds + int(seconds))
        if self.remaining_seconds == 0:
            self._finish(skipped=False)
        else:
            self._countdown(self.remaining_seconds)
        return True

    def cancel(self) -> None:
        """Остановить отсчёт без вызова on_complete (переход к другому упражнению, сброс)."""
        self.running = False
        self.remaining_seconds = 0
        self._fired = True

    def _finish(self, skipped: bool) -> None:
        if self._fired:
            return
        self._fired = True
        self.running = False
        self.remaining_seconds = 0
        self.on_complete(skipped)

    def _countdown(self, seconds: int) -> None:
        if self.on_countdown and seconds in VOICE_COUNTDOWN_SECONDS:
            try:
                self.on_countdown(seconds)
            except Exception as e:
                logger.debug(f"Голосовой отсчёт недоступен: {e}")

        if self.sound_enabled and self.beep and (seconds in BEEP_SECONDS or seconds <= 3):
            try:
                self.beep(BEEP_HIGH_HZ if seconds <= 3 else BEEP_LOW_HZ)
            except Exception as e:
                logger.debug(f"Звуковой сигнал недоступен: {e}")
