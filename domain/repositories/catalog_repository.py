from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from domain.entities import CatalogEntity, EntityType


class CatalogRepository(ABC):
    """Entity store for catalog records.

    Implementations assign identifiers on insert and keep a collation key of
    each record's natural key, which they also hold unique: a write that
    would give two records of one type the same key raises DuplicateKeyError.
    """

    @abstractmethod
    def get_by_id(self, entity_type: EntityType, entity_id: str) -> Optional[CatalogEntity]:
        pass

    @abstractmethod
    def list_all(
        self,
        entity_type: EntityType,
        fields: Optional[Sequence[str]] = None,
        sort_by: Optional[str] = None,
    ) -> List[CatalogEntity]:
        """All records of a type, projected to ``fields`` and sorted ascending by ``sort_by``"""
        pass

    @abstractmethod
    def find_by_reference(
        self,
        entity_type: EntityType,
        field: str,
        referenced_id: str,
        fields: Optional[Sequence[str]] = None,
    ) -> List[CatalogEntity]:
        """Records of ``entity_type`` whose ``field`` holds ``referenced_id``"""
        pass

    @abstractmethod
    def find_by_natural_key(self, entity_type: EntityType, value: str) -> Optional[CatalogEntity]:
        """First record whose natural key collates equal to ``value``"""
        pass

    @abstractmethod
    def insert(self, entity: CatalogEntity) -> str:
        """Persist a new record and return its fresh identifier"""
        pass

    @abstractmethod
    def replace(self, entity: CatalogEntity) -> bool:
        """Overwrite every stored field of ``entity.id``; False when there is no such record"""
        pass

    @abstractmethod
    def delete(self, entity_type: EntityType, entity_id: str) -> bool:
        pass

    @abstractmethod
    def count(self, entity_type: EntityType, filters: Optional[Dict[str, Any]] = None) -> int:
        pass

    @abstractmethod
    def ping(self) -> bool:
        pass

    def close(self) -> None:
        pass
