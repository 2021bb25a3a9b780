"""
In-memory catalog store used for tests and when Neo4j is not available
"""

import copy
import logging
import threading
from typing import Any, Dict, List, Optional, Sequence

from domain.entities import ENTITY_CLASSES, CatalogEntity, EntityType, new_identifier
from domain.exceptions import DuplicateKeyError
from domain.repositories import CatalogRepository
from domain.services.collation import Collation

logger = logging.getLogger(__name__)


class InMemoryCatalogRepository(CatalogRepository):
    def __init__(self, collation: Optional[Collation] = None) -> None:
        self.collation = collation or Collation()
        self._records: Dict[EntityType, Dict[str, dict]] = {entity_type: {} for entity_type in EntityType}
        # collation key -> record id, per entity type
        self._keys: Dict[EntityType, Dict[str, str]] = {entity_type: {} for entity_type in EntityType}
        self._lock = threading.RLock()

    def _to_entity(self, entity_type: EntityType, record_id: str, record: dict, fields: Optional[Sequence[str]] = None):
        values = copy.deepcopy(record)
        if fields is not None:
            values = {name: values[name] for name in fields if name in values}
        values["id"] = record_id
        return ENTITY_CLASSES[entity_type].from_record(values)

    def _key_of(self, entity: CatalogEntity) -> Optional[str]:
        natural_key = entity.natural_key
        return self.collation.key(natural_key) if natural_key else None

    def get_by_id(self, entity_type: EntityType, entity_id: str) -> Optional[CatalogEntity]:
        with self._lock:
            record = self._records[entity_type].get(entity_id)
            if record is None:
                return None
            return self._to_entity(entity_type, entity_id, record)

    def list_all(
        self,
        entity_type: EntityType,
        fields: Optional[Sequence[str]] = None,
        sort_by: Optional[str] = None,
    ) -> List[CatalogEntity]:
        with self._lock:
            items = list(self._records[entity_type].items())
        if sort_by:
            items.sort(key=lambda item: (item[1].get(sort_by) is None, item[1].get(sort_by) or ""))
        return [self._to_entity(entity_type, record_id, record, fields) for record_id, record in items]

    def find_by_reference(
        self,
        entity_type: EntityType,
        field: str,
        referenced_id: str,
        fields: Optional[Sequence[str]] = None,
    ) -> List[CatalogEntity]:
        with self._lock:
            return [
                self._to_entity(entity_type, record_id, record, fields)
                for record_id, record in self._records[entity_type].items()
                if record.get(field) == referenced_id
            ]

    def find_by_natural_key(self, entity_type: EntityType, value: str) -> Optional[CatalogEntity]:
        key = self.collation.key(value)
        with self._lock:
            record_id = self._keys[entity_type].get(key)
            if record_id is None:
                return None
            return self._to_entity(entity_type, record_id, self._records[entity_type][record_id])

    def insert(self, entity: CatalogEntity) -> str:
        entity_type = entity.entity_type
        key = self._key_of(entity)
        with self._lock:
            if key is not None and key in self._keys[entity_type]:
                raise DuplicateKeyError(
                    f"{entity_type.label} '{entity.natural_key}' already exists", entity_type=entity_type.value, key=key
                )
            record_id = new_identifier()
            self._records[entity_type][record_id] = copy.deepcopy(entity.to_record())
            if key is not None:
                self._keys[entity_type][key] = record_id
        logger.debug(f"Inserted {entity_type.value} {record_id}")
        return record_id

    def replace(self, entity: CatalogEntity) -> bool:
        entity_type = entity.entity_type
        key = self._key_of(entity)
        with self._lock:
            records = self._records[entity_type]
            if entity.id not in records:
                return False
            holder = self._keys[entity_type].get(key) if key is not None else None
            if holder is not None and holder != entity.id:
                raise DuplicateKeyError(
                    f"{entity_type.label} '{entity.natural_key}' already exists", entity_type=entity_type.value, key=key
                )
            self._drop_key(entity_type, entity.id)
            records[entity.id] = copy.deepcopy(entity.to_record())
            if key is not None:
                self._keys[entity_type][key] = entity.id
        return True

    def delete(self, entity_type: EntityType, entity_id: str) -> bool:
        with self._lock:
            if entity_id not in self._records[entity_type]:
                return False
            self._drop_key(entity_type, entity_id)
            del self._records[entity_type][entity_id]
        return True

    def _drop_key(self, entity_type: EntityType, entity_id: str) -> None:
        keys = self._keys[entity_type]
        for key, holder in list(keys.items()):
            if holder == entity_id:
                del keys[key]

    def count(self, entity_type: EntityType, filters: Optional[Dict[str, Any]] = None) -> int:
        filters = filters or {}
        with self._lock:
            return sum(
                1
                for record in self._records[entity_type].values()
                if all(record.get(name) == value for name, value in filters.items())
            )

    def ping(self) -> bool:
        return True
