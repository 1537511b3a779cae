from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from fitclub.core.db import get_db
from fitclub.core.config import settings
from fitclub.models.member import Member
from fitclub.repositories.member_repository import MemberRepository
from fitclub.repositories.workout_repository import WorkoutRepository
from fitclub.services.session_registry import SessionRegistry, session_registry
from fitclub.services.workout_session_service import WorkoutSessionService


security = HTTPBearer()


def get_member_repository(db: AsyncSession = Depends(get_db)) -> MemberRepository:
    """Фабрика репозитория, инжектируется в эндпоинты через Depends."""
    return MemberRepository(db)


def get_workout_repository(db: AsyncSession = Depends(get_db)) -> WorkoutRepository:
    return WorkoutRepository(db)


def get_session_registry() -> SessionRegistry:
    return session_registry


def get_session_service(
        repo: WorkoutRepository = Depends(get_workout_repository),
        registry: SessionRegistry = Depends(get_session_registry),
) -> WorkoutSessionService:
    return WorkoutSessionService(repo, registry)


async def get_current_member(
        credentials: HTTPAuthorizationCredentials = Depends(security),
        repo: MemberRepository = Depends(get_member_repository),
) -> Member:
    """Токен выпускает хостинг авторизации, здесь только проверяем подпись и ищем участника."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Невалидный токен доступа",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options={"verify_aud": settings.JWT_AUDIENCE is not None},
        )
        auth_id: str = payload.get("sub")
        if auth_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    member = await repo.get_by_auth_id(auth_id)
    if member is None:
        raise credentials_exception

    return member
