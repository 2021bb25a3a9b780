import logging
from typing import Optional

from domain.entities import CatalogEntity
from domain.repositories import CatalogRepository

logger = logging.getLogger(__name__)


class DuplicateResolver:
    """Finds the stored record that already holds a candidate's natural key"""

    def __init__(self, repository: CatalogRepository):
        self.repository = repository

    def find_existing(self, candidate: CatalogEntity) -> Optional[CatalogEntity]:
        natural_key = candidate.natural_key
        if not candidate.has_natural_key or not natural_key:
            return None
        existing = self.repository.find_by_natural_key(candidate.entity_type, natural_key)
        if existing is not None:
            logger.debug(f"{candidate.entity_type.value} '{natural_key}' already stored as {existing.id}")
        return existing

    def find_conflicting(self, candidate: CatalogEntity) -> Optional[CatalogEntity]:
        """Like find_existing, but a record only ever conflicts with a different record"""
        existing = self.find_existing(candidate)
        if existing is not None and existing.id == candidate.id:
            return None
        return existing
