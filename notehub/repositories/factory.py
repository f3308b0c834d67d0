from notehub.config import STORAGE_MEMORY, STORAGE_SQL, Settings, normalize_storage_type
from notehub.db import check_connection, create_db_engine
from notehub.errors import ConfigurationError, StorageError
from notehub.logging_config import get_logger
from notehub.repositories.base import NoteRepository
from notehub.repositories.memory import InMemoryNoteRepository
from notehub.repositories.sql import SqlNoteRepository

logger = get_logger(__name__)


def create_repository(settings: Settings) -> NoteRepository:
    """
    Build the repository selected by ``settings.storage_type``.

    For the SQL backend the database must answer ``SELECT 1`` before the schema
    is created; otherwise StorageError is raised and startup aborts.
    """
    storage = normalize_storage_type(settings.storage_type)

    if storage == STORAGE_MEMORY:
        logger.info("repository_selected", storage=STORAGE_MEMORY)
        return InMemoryNoteRepository()

    if storage == STORAGE_SQL:
        logger.info("repository_selected", storage=STORAGE_SQL, **settings.describe())
        engine = create_db_engine(
            settings.database_url, pool_size=settings.db_pool_size, echo=settings.db_echo
        )
        if not check_connection(engine):
            engine.dispose()
            raise StorageError("Failed to connect to the database")
        repository = SqlNoteRepository(engine)
        repository.initialize()
        return repository

    raise ConfigurationError(
        f"Unknown STORAGE_TYPE {settings.storage_type!r}; expected 'memory' or 'postgres'"
    )
