from src.strategist.adapters.base import StorageAdapter, StorageResult
from src.strategist.adapters.document import DocumentStorageAdapter
from src.strategist.adapters.factory import create_adapter
from src.strategist.adapters.local import LocalStorageAdapter
from src.strategist.adapters.remote import RemoteStorageAdapter

__all__ = [
    "DocumentStorageAdapter",
    "LocalStorageAdapter",
    "RemoteStorageAdapter",
    "StorageAdapter",
    "StorageResult",
    "create_adapter",
]
