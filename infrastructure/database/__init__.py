from .factory import create_repository
from .memory_repository import InMemoryCatalogRepository
from .neo4j_repository import Neo4jCatalogRepository

__all__ = ["create_repository", "InMemoryCatalogRepository", "Neo4jCatalogRepository"]
