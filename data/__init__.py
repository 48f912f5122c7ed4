"""Data access layer - Database models and connections."""

from .db_models import Base, TranslationHistory, WordVaultEntry
from .database import (
    DatabaseManager,
    get_db_manager,
    session_scope,
    init_database,
    get_db
)
from .repositories import TranslationHistoryRepository, WordVaultRepository

__all__ = [
    # Models
    'Base',
    'TranslationHistory',
    'WordVaultEntry',

    # Database
    'DatabaseManager',
    'get_db_manager',
    'session_scope',
    'init_database',
    'get_db',

    # Repositories
    'TranslationHistoryRepository',
    'WordVaultRepository'
]
