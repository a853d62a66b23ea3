from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ihostit.api.routers import catalog
from ihostit.bootstrap.manager import bootstrap_store, build_scheduler
from ihostit.config.settings import config
from ihostit.version import get_version


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = bootstrap_store()
    scheduler = build_scheduler(store)
    app.state.store = store
    app.state.scheduler = scheduler
    if config.scheduler_enabled:
        scheduler.start()
    try:
        yield
    finally:
        scheduler.stop()


app = FastAPI(
    title="ihostit API",
    description="A browsable catalog of self-hosted software.",
    version=get_version(),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(catalog.router)
