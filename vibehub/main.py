from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vibehub.core import config
from vibehub.core.logging import get_logger, setup_logging
from vibehub.core.middleware import RequestLoggingMiddleware
from vibehub.realtime.notifications import redis_client
from vibehub.routers.meetups import router as meetups_router
from vibehub.routers.tickets import router as tickets_router

setup_logging()
logger = get_logger(__name__)


def _run_alembic_upgrade() -> None:
    """앱 기동 시 DB 마이그레이션 자동 적용."""
    from alembic import command
    from alembic.config import Config

    root = Path(__file__).resolve().parent.parent
    cfg = Config(str(root / "alembic.ini"))
    command.upgrade(cfg, "head")


app = FastAPI(
    title=config.APP_NAME,
    description="모임 라이프사이클/장소 승인, 주변 탐색, 참여 정원과 QR 티켓을 다루는 VibeHub 백엔드 API",
    version=config.APP_VERSION,
)


@app.on_event("startup")
def _startup_migrate() -> None:
    logger.info("application_starting", app=config.APP_NAME, environment=config.ENVIRONMENT)
    if not config.RUN_MIGRATIONS_ON_STARTUP:
        return
    try:
        _run_alembic_upgrade()
    except Exception as e:
        # DB 미기동 등 실패 시에도 앱은 기동 (예: 로컬에서 DB 없이 실행 시)
        logger.warning("migration_skipped", error=str(e))


@app.on_event("shutdown")
async def _shutdown_redis() -> None:
    await redis_client.aclose()
    logger.info("application_shutdown")


app.include_router(meetups_router)
app.include_router(tickets_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # TODO: 운영 시 특정 도메인으로 제한
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    return {"status": "ok"}


@app.get("/", tags=["Root"])
async def root() -> dict:
    return {
        "message": "VibeHub API에 오신 것을 환영합니다.",
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("vibehub.main:app", host="0.0.0.0", port=8000, reload=True)
