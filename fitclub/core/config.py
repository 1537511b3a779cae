from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql://fitclub_user:fitclub_password@db:5432/fitclub_db"
    # Секрет, которым хостинг авторизации подписывает access-токены участников
    JWT_SECRET: str = "SECRET_KEY_FOR_FITCLUB"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None
    # При продакшн/обычной разработке лучше не пересоздавать БД на каждом старте
    RESET_DATABASE: bool = False
    SEED_TEST_DATA: bool = False
    LOG_LEVEL: str = "INFO"

    # Тренировочная сессия
    REST_ADJUST_STEP: int = 15
    WEIGHT_STEP: float = 2.5
    START_ANNOUNCE_DELAY: float = 1.5
    NEXT_EXERCISE_ANNOUNCE_DELAY: float = 2.0
    VOICE_RATE: float = 1.0
    VOICE_WORDS_PER_SECOND: float = 2.5
    CALORIES_PER_MINUTE: int = 8
    # Брошенные сессии (клиент пропал без DELETE /session) закрываются по таймауту
    SESSION_IDLE_TIMEOUT: int = 2 * 60 * 60
    SESSION_SWEEP_INTERVAL: int = 60

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

settings = Settings()
