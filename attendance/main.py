from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from attendance.config.logging import setup_logging
from attendance.config.settings import settings
from attendance.polls.dispatcher import RequestDispatcher
from attendance.polls.engine import AttendanceEngine
from attendance.polls.repository.store import EventStore
from attendance.polls.router import router as polls_router
from attendance.routers.healthz.router import router as healthz_router


def build_dispatcher() -> RequestDispatcher:
    store = EventStore(settings.snapshot_path)
    store.load_on_startup()
    return RequestDispatcher(AttendanceEngine(store, config=settings))


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    dispatcher = build_dispatcher()
    await dispatcher.start()
    app.state.dispatcher = dispatcher
    try:
        yield
    finally:
        await dispatcher.stop()


if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        profiles_sample_rate=settings.SENTRY_PROFILES_SAMPLE_RATE,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        send_default_pii=False,
    )

app = FastAPI(
    title="Attendance Poll API",
    description="Attendance polls with sign-up/sign-off and a registration deadline",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(healthz_router, prefix="/healthz", tags=["Healthz"])
app.include_router(polls_router, tags=["Polls"])


@app.get("/", tags=["Root"])
async def root():
    return {"message": "Welcome to the Attendance Poll API"}
