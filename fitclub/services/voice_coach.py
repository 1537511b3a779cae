import logging
import time
from collections import deque
from typing import Callable, Deque, List, Optional, Protocol

from fitclub.schemas.session import Announcement

logger = logging.getLogger(__name__)


class Announcer(Protocol):
    def speak(self, text: str, priority: bool = False) -> bool: ...

    def cancel(self) -> None: ...


class SpeechEngine(Protocol):
    @property
    def is_speaking(self) -> bool: ...

    def utter(self, text: str, priority: bool = False) -> None: ...

    def stop(self) -> None: ...


class NullSpeechEngine:
    """Движок без звука для headless-окружения и тестов."""

    is_speaking = False

    def utter(self, text: str, priority: bool = False) -> None:
        pass

    def stop(self) -> None:
        pass


class UtteranceFeed:
    """
    Лента фраз для мобильного клиента.

    Сервер не синтезирует речь сам: фразы и звуковые сигналы складываются в ленту,
    клиент забирает их через GET /session и проигрывает. Занятость движка
    оценивается по длительности последней фразы (слова в секунду * rate).
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        rate: float = 1.0,
        words_per_second: float = 2.5,
        max_items: int = 200,
    ):
        self._clock = clock
        self.rate = rate
        self.words_per_second = words_per_second
        self._items: Deque[Announcement] = deque(maxlen=max_items)
        self._seq = 0
        self._speaking_until = 0.0

    @property
    def is_speaking(self) -> bool:
        return self._clock() < self._speaking_until

    @property
    def last_seq(self) -> int:
        return self._seq

    def estimate_duration(self, text: str) -> float:
        words = max(1, len(text.split()))
        return words / (self.words_per_second * self.rate)

    def utter(self, text: str, priority: bool = False) -> None:
        now = self._clock()
        duration = self.estimate_duration(text)
        self._push(Announcement(seq=0, kind="speech", text=text, priority=priority, at=now, duration=duration))
        self._speaking_until = now + duration

    def stop(self) -> None:
        self._speaking_until = self._clock()

    def beep(self, frequency: int) -> None:
        self._push(Announcement(
            seq=0, kind="beep", text="", priority=False, at=self._clock(), duration=0.1, frequency=frequency,
        ))

    def since(self, seq: int) -> List[Announcement]:
        return [item for item in self._items if item.seq > seq]

    def _push(self, item: Announcement) -> None:
        self._seq += 1
        item.seq = self._seq
        self._items.append(item)


def format_weight(weight: float) -> str:
    return str(int(weight)) if float(weight).is_integer() else str(weight)


class VoiceCoach:
    """
    Голосовой тренер: переводит события сессии в короткие фразы.

    Приоритетные фразы прерывают текущую, неприоритетные отбрасываются,
    если движок занят. Очереди нет.
    """

    def __init__(self, engine: Optional[SpeechEngine] = None, enabled: bool = True):
        self.engine = engine or NullSpeechEngine()
        self.enabled = enabled

    @property
    def is_speaking(self) -> bool:
        return self.enabled and self.engine.is_speaking

    def speak(self, text: str, priority: bool = False) -> bool:
        if not self.enabled:
            return False

        try:
            if self.engine.is_speaking:
                if not priority:
                    logger.debug(f"Движок занят, фраза пропущена: {text}")
                    return False
                self.engine.stop()
            self.engine.utter(text, priority)
        except Exception as e:
            logger.debug(f"Озвучка недоступна: {e}")
            return False
        return True

    def cancel(self) -> None:
        try:
            self.engine.stop()
        except Exception as e:
            logger.debug(f"Не удалось остановить озвучку: {e}")

    def set_enabled(self, enabled: bool) -> None:
        if not enabled:
            self.cancel()
        self.enabled = enabled

    def toggle(self) -> bool:
        self.set_enabled(not self.enabled)
        return self.enabled

    # Готовые фразы

    def announce_set_complete(self, set_number: int, total_sets: int) -> bool:
        if set_number == total_sets:
            return self.speak("Exercise complete! Great work!", True)
        return self.speak(f"Set {set_number} complete. {total_sets - set_number} sets remaining.", True)

    def announce_rest_countdown(self, seconds: int) -> bool:
        if seconds in (10, 5):
            return self.speak(f"{seconds} seconds", True)
        if seconds in (3, 2, 1):
            return self.speak(str(seconds), True)
        return False

    def announce_rest_complete(self) -> bool:
        return self.speak("Rest complete. Let's go!", True)

    def announce_exercise(self, name: str, sets: int, reps: int, weight: Optional[float] = None) -> bool:
        weight_text = f" at {format_weight(weight)} kilograms" if weight else ""
        return self.speak(f"Next exercise: {name}. {sets} sets of {reps} reps{weight_text}.", True)

    def announce_workout_start(self) -> bool:
        return self.speak("Workout started. Let's crush it!", True)

    def announce_workout_complete(self) -> bool:
        return self.speak("Congratulations! Workout complete! You did amazing!", True)

    def announce_rpe(self, rpe: int) -> bool:
        if rpe >= 9:
            return self.speak("Max effort! Incredible push!", False)
        if rpe >= 7:
            return self.speak("Strong effort! Keep it up!", False)
        if rpe <= 3:
            return self.speak("Feeling strong! Consider adding weight.", False)
        return False
