"""Pick the storage adapter from configuration."""

from src.strategist.adapters.base import StorageAdapter
from src.strategist.adapters.local import LocalStorageAdapter
from src.strategist.adapters.remote import RemoteStorageAdapter
from src.strategist.core.auth import AuthProvider, SessionAuthProvider
from src.strategist.core.config import Settings, get_settings
from src.strategist.core.logging import get_logger

logger = get_logger(__name__)


def create_adapter(
    settings: Settings | None = None, auth_provider: AuthProvider | None = None
) -> StorageAdapter:
    """Build the adapter named by ``STORAGE_ADAPTER`` (``local`` unless configured)."""
    settings = settings or get_settings()

    match settings.storage_adapter:
        case "remote":
            logger.info("Using remote storage adapter")
            return RemoteStorageAdapter(auth_provider or SessionAuthProvider())
        case "local":
            logger.info("Using local storage adapter", key=settings.local_storage_key)
            return LocalStorageAdapter(
                storage_key=settings.local_storage_key,
                backup_key=settings.local_backup_key,
                current_project_key=settings.local_current_project_key,
            )
