from typing import Optional

from fastapi import FastAPI
from contextlib import asynccontextmanager
from app.core.config import Settings, settings
from app.core.db.base import create_engine, create_session_maker, create_tables
from app.core.logging import get_logger, setup_logging
from app.core.repositories import build_store
from app.apis.auth import router as auth_router
from app.apis.study.main import router as study_router

import uvicorn
from fastapi.middleware.cors import CORSMiddleware
from app.core.task_queue import BackgroundQueue
from app.modules.study.generator import MaterialGenerator
from app.modules.study.jobs import DocumentProcessor
from app.modules.study.providers import CompletionProvider, get_provider


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    cfg: Settings = app.state.settings
    # Storage, provider and queue are built once here and injected via app.state
    engine = create_engine(cfg.database)
    session_maker = create_session_maker(engine)
    await create_tables(engine)

    store = build_store(cfg.database, engine, session_maker)
    await store.init()

    provider = app.state.provider or get_provider(cfg.ai)
    processor = DocumentProcessor(store, MaterialGenerator(provider, cfg.ai.model))
    queue = BackgroundQueue(concurrency=cfg.app.queue_concurrency)

    app.state.engine = engine
    app.state.session_maker = session_maker
    app.state.store = store
    app.state.processor = processor
    app.state.queue = queue

    queue.start()
    try:
        yield
    finally:
        await queue.stop()
        await store.close()
        await engine.dispose()


def create_app(
    cfg: Optional[Settings] = None,
    *,
    provider: Optional[CompletionProvider] = None,
) -> FastAPI:
    cfg = cfg or settings
    app = FastAPI(title=cfg.app.name, version=cfg.app.version, lifespan=lifespan)
    app.state.settings = cfg
    app.state.provider = provider

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.app.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(study_router)

    @app.get("/")
    async def root():
        return {
            "status": "ok",
            "app": cfg.app.name,
            "version": cfg.app.version,
        }

    return app


app = create_app()


if __name__ == "__main__":
    setup_logging()
    try:
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.app.port,
            reload=not settings.app.is_production,
        )
    except Exception as e:
        logger.error(f"An error occurred when starting the server: {e}.")
