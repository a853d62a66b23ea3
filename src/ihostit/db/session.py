from functools import lru_cache

from ihostit.config.settings import config
from ihostit.db.manager import DatabaseManager


@lru_cache(maxsize=1)
def get_db_manager() -> DatabaseManager:
    """Database manager for the configured URL, shared by the API and CLI."""
    return DatabaseManager(config.database_url)
