"""
Общие фикстуры для всех тестов FitClub backend.

Стратегия:
- Тестовое FastAPI-приложение создаётся без startup-событий (нет подключения к БД).
- MemberRepository и WorkoutRepository заменяются на AsyncMock.
- Реестр сессий у каждого теста свой, на teardown все сессии закрываются.
- JWT-токены подписываются тем же секретом, что проверяет get_current_member.
"""

import pytest
from unittest.mock import AsyncMock
from httpx import AsyncClient, ASGITransport
from fastapi import FastAPI
from datetime import datetime
from typing import AsyncGenerator

from jose import jwt

from fitclub.api.router import api_router
from fitclub.core.config import settings
from fitclub.core.dependencies import (
    get_current_member,
    get_member_repository,
    get_session_registry,
    get_workout_repository,
)
from fitclub.models.member import Member
from fitclub.repositories.member_repository import MemberRepository
from fitclub.repositories.workout_repository import WorkoutRepository
from fitclub.services.session_registry import SessionRegistry
from tests.factories import make_plan


# ---------------------------------------------------------------------------
# Вспомогательные функции
# ---------------------------------------------------------------------------

def create_test_app() -> FastAPI:
    """Тестовое FastAPI-приложение без startup-событий."""
    test_app = FastAPI(title="FitClub Test App")
    test_app.include_router(api_router, prefix="/api/v1")
    return test_app


def make_auth_headers(member: Member) -> dict:
    """Заголовки авторизации с токеном, как его выпускает хостинг авторизации."""
    token = jwt.encode({"sub": member.auth_id}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Фикстуры участников
# ---------------------------------------------------------------------------

@pytest.fixture
def member_fixture() -> Member:
    return Member(
        id=1,
        auth_id="00000000-0000-0000-0000-000000000001",
        name="Test Member",
        email="test@example.com",
        created_at=datetime.utcnow(),
    )


# ---------------------------------------------------------------------------
# Фикстуры для зависимостей
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_member_repo() -> AsyncMock:
    return AsyncMock(spec=MemberRepository)


@pytest.fixture
def mock_workout_repo() -> AsyncMock:
    """
    Репозиторий тренировок с назначенным планом по умолчанию:
    A (2x10, 20 кг, отдых 30 с) и B (1x8, 15 кг, отдых 45 с).
    """
    repo = AsyncMock(spec=WorkoutRepository)
    repo.fetch_assigned_workout.return_value = make_plan()
    repo.fetch_last_performance.return_value = {}
    repo.mark_assignment_completed.return_value = True
    return repo


@pytest.fixture
async def registry() -> AsyncGenerator[SessionRegistry, None]:
    registry = SessionRegistry()
    yield registry
    registry.close_all()


# ---------------------------------------------------------------------------
# HTTP-клиенты
# ---------------------------------------------------------------------------

@pytest.fixture
async def client(mock_member_repo, mock_workout_repo, registry) -> AsyncGenerator[AsyncClient, None]:
    """
    Клиент с настоящей проверкой токена: get_member_repository → mock_member_repo.
    Используется для проверки авторизации.
    """
    app = create_test_app()
    app.dependency_overrides[get_member_repository] = lambda: mock_member_repo
    app.dependency_overrides[get_workout_repository] = lambda: mock_workout_repo
    app.dependency_overrides[get_session_registry] = lambda: registry
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
async def member_client(member_fixture, mock_workout_repo, registry) -> AsyncGenerator[AsyncClient, None]:
    """
    Клиент, аутентифицированный как участник.
    get_current_member → member_fixture, get_workout_repository → mock_workout_repo.
    """
    app = create_test_app()
    app.dependency_overrides[get_current_member] = lambda: member_fixture
    app.dependency_overrides[get_workout_repository] = lambda: mock_workout_repo
    app.dependency_overrides[get_session_registry] = lambda: registry
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
