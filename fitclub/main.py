import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select

from fitclub.api.router import api_router
from fitclub.core.config import settings
from fitclub.core.database import init_database
from fitclub.core.db import AsyncSessionLocal
from fitclub.core.test_data import create_test_data
from fitclub.models.member import Member
from fitclub.services.scheduler import Ticker
from fitclub.services.session_registry import session_registry

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="FitClub - member workout sessions")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "capacitor://localhost",
        "http://localhost",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")

idle_sweeper = Ticker(
    lambda: session_registry.evict_idle(settings.SESSION_IDLE_TIMEOUT),
    interval=settings.SESSION_SWEEP_INTERVAL,
    name="idle-sessions",
)


@app.on_event("startup")
async def startup_event():
    await init_database()
    idle_sweeper.start()
    logger.info("Приложение запущено")

    if not settings.SEED_TEST_DATA:
        return

    async with AsyncSessionLocal() as session:
        result = await session.execute(select(Member).where(Member.email == "test@example.com"))
        existing_member = result.scalar_one_or_none()

        if not existing_member:
            await create_test_data(session)
        else:
            logger.info(f"Тестовый участник уже существует: {existing_member.email} (ID: {existing_member.id})")


@app.on_event("shutdown")
async def shutdown_event():
    # Ни один тикер не должен пережить приложение
    idle_sweeper.stop()
    session_registry.close_all()


@app.get("/health")
async def health():
    return {"ok": True, "active_sessions": len(session_registry)}
