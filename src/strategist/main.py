"""Client session lifecycle: logging, storage, store and auto-save."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from src.strategist.adapters import RemoteStorageAdapter, create_adapter
from src.strategist.core.auth import AuthProvider
from src.strategist.core.config import Settings, get_settings
from src.strategist.core.db import create_tables, dispose_engine
from src.strategist.core.logging import get_logger, setup_logging
from src.strategist.core.redis import close_redis
from src.strategist.services.project_repository import ProjectRepository
from src.strategist.state import AutoSaver, ProjectStore

logger = get_logger(__name__)


@dataclass
class ClientSession:
    store: ProjectStore
    auto_saver: AutoSaver


@asynccontextmanager
async def lifespan(
    settings: Settings | None = None,
    auth_provider: AuthProvider | None = None,
    auto_save: bool = True,
) -> AsyncGenerator[ClientSession]:
    """Set up a client session and tear it down on exit.

    Remote storage gets its tables created on first use. Connections are
    closed after the auto-saver has stopped.
    """
    settings = settings or get_settings()
    setup_logging(settings.debug)
    logger.info(f"Starting {settings.app_name}", storage=settings.storage_adapter)

    adapter = create_adapter(settings, auth_provider)
    if isinstance(adapter, RemoteStorageAdapter):
        await create_tables()

    store = ProjectStore(ProjectRepository(adapter))
    auto_saver = AutoSaver(store, settings.auto_save_interval_seconds)
    if auto_save:
        auto_saver.start()

    try:
        yield ClientSession(store=store, auto_saver=auto_saver)
    finally:
        await auto_saver.stop()
        logger.info("Closing connections...")
        await close_redis()
        await dispose_engine()
        logger.info("Shutdown complete")
