"""行存储实例管理。"""

from functools import lru_cache

from jdoc_api.core.config import get_settings
from jdoc_api.db.base import RowStore
from jdoc_api.db.memory import InMemoryRowStore
from jdoc_api.db.sheets import GoogleSheetsRowStore


@lru_cache
def _build_row_store(backend: str) -> RowStore:
    settings = get_settings()
    if backend == "google_sheets":
        if not settings.google_client_email or not settings.google_private_key_pem:
            raise RuntimeError("google_sheets backend requires JD_GOOGLE_CLIENT_EMAIL and JD_GOOGLE_PRIVATE_KEY")
        return GoogleSheetsRowStore(
            client_email=settings.google_client_email,
            private_key=settings.google_private_key_pem,
        )
    return InMemoryRowStore()


def get_row_store() -> RowStore:
    """为请求提供全局共享的行存储。"""
    return _build_row_store(get_settings().row_store_backend)
