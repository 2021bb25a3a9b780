import logging

from config.settings import CatalogSettings
from domain.exceptions import StoreError
from domain.repositories import CatalogRepository
from infrastructure.database.memory_repository import InMemoryCatalogRepository
from infrastructure.database.neo4j_repository import Neo4jCatalogRepository

logger = logging.getLogger(__name__)


def create_repository(settings: CatalogSettings) -> CatalogRepository:
    """Build the process-wide catalog store, falling back to memory when Neo4j is unreachable"""
    collation = settings.collation
    if settings.use_memory_store:
        logger.info("CATALOG_STORE=memory, using in-memory catalog store")
        return InMemoryCatalogRepository(collation=collation)

    repository = Neo4jCatalogRepository(
        uri=settings.neo4j_uri,
        user=settings.neo4j_user,
        password=settings.neo4j_password,
        database=settings.neo4j_database,
        collation=collation,
    )
    try:
        repository.connect()
        repository.ensure_schema()
        logger.info("Neo4j catalog store initialized")
        return repository
    except StoreError as e:
        logger.error(f"Failed to initialize Neo4j catalog store: {e}")
        logger.info("Using in-memory catalog store")
        repository.close()
        return InMemoryCatalogRepository(collation=collation)
