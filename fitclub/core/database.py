import logging

from fitclub.core.config import settings
from fitclub.core.base import Base
from fitclub.core.db import engine

# Импортируем ВСЕ модели, чтобы они попали в metadata
from fitclub.models.member import Member
from fitclub.models.workout import Workout, WorkoutExercise
from fitclub.models.assignment import WorkoutAssignment
from fitclub.models.workout_log import WorkoutLog

logger = logging.getLogger(__name__)


async def init_database():
    """Инициализация базы данных"""
    async with engine.begin() as conn:
        # Удаляем все таблицы если RESET_DATABASE=true
        if settings.RESET_DATABASE:
            logger.warning("RESET_DATABASE=true - пересоздаем БД")
            await conn.run_sync(Base.metadata.drop_all)

        await conn.run_sync(Base.metadata.create_all)
        logger.info("Таблицы БД созданы/проверены")
