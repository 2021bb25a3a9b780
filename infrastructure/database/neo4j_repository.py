from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence
import logging

from neo4j import GraphDatabase
from neo4j.exceptions import ConstraintError, DriverError, Neo4jError, ServiceUnavailable, SessionExpired

from domain.entities import ENTITY_CLASSES, CatalogEntity, EntityType, new_identifier
from domain.exceptions import DuplicateKeyError, StoreError, StoreUnavailableError
from domain.repositories import CatalogRepository
from domain.services.collation import Collation

logger = logging.getLogger(__name__)

NATURAL_KEY_PROPERTY = "natural_key"


def node_label(entity_type: EntityType) -> str:
    return ENTITY_CLASSES[entity_type].__name__


def schema_statements() -> List[str]:
    """Unique constraints on identifiers and collated natural keys"""
    statements = []
    for entity_type in EntityType:
        label = node_label(entity_type)
        statements.append(
            f"CREATE CONSTRAINT {entity_type.value}_id_unique IF NOT EXISTS "
            f"FOR (n:{label}) REQUIRE n.id IS UNIQUE"
        )
        if ENTITY_CLASSES[entity_type].has_natural_key:
            statements.append(
                f"CREATE CONSTRAINT {entity_type.value}_natural_key_unique IF NOT EXISTS "
                f"FOR (n:{label}) REQUIRE n.{NATURAL_KEY_PROPERTY} IS UNIQUE"
            )
    return statements


class Neo4jCatalogRepository(CatalogRepository):
    def __init__(
        self,
        uri: str,
        user: str,
        password: str,
        database: Optional[str] = None,
        collation: Optional[Collation] = None,
    ):
        self.uri = uri
        self.user = user
        self.password = password
        self.database = database
        self.collation = collation or Collation()
        self.driver = None

    def connect(self):
        """Connect to Neo4j database"""
        try:
            self.driver = GraphDatabase.driver(self.uri, auth=(self.user, self.password))
            self.driver.verify_connectivity()
            logger.info("Connected to Neo4j database")
        except Exception as e:
            logger.error(f"Failed to connect to Neo4j: {e}")
            raise StoreUnavailableError(f"Neo4j is not reachable at {self.uri}") from e

    def close(self):
        """Close database connection"""
        if self.driver:
            self.driver.close()
            logger.info("Neo4j connection closed")

    def ensure_schema(self) -> None:
        with self._translate_errors():
            with self._session() as session:
                for statement in schema_statements():
                    session.run(statement).consume()
        logger.info("Catalog constraints are in place")

    # ---------------------- Low-level helpers ----------------------
    def _session(self):
        if self.driver is None:
            raise StoreUnavailableError("Neo4j driver is not connected")
        if self.database:
            return self.driver.session(database=self.database)
        return self.driver.session()

    @contextmanager
    def _translate_errors(self, entity_type: Optional[EntityType] = None):
        try:
            yield
        except ConstraintError as e:
            raise DuplicateKeyError(str(e), entity_type=entity_type.value if entity_type else None) from e
        except (ServiceUnavailable, SessionExpired) as e:
            logger.error(f"Neo4j unavailable: {e}")
            raise StoreUnavailableError("Catalog store is unavailable") from e
        except (Neo4jError, DriverError) as e:
            logger.error(f"Neo4j query failed: {e}")
            raise StoreError("Catalog store query failed") from e

    def _deserialize_value(self, value):
        """Convert Neo4j temporal types to native Python ones"""
        if hasattr(value, "to_native"):
            return value.to_native()
        return value

    def _to_entity(self, entity_type: EntityType, properties: Dict[str, Any]) -> CatalogEntity:
        values = {k: self._deserialize_value(v) for k, v in properties.items() if k != NATURAL_KEY_PROPERTY}
        return ENTITY_CLASSES[entity_type].from_record(values)

    def _properties(self, entity: CatalogEntity, entity_id: str) -> Dict[str, Any]:
        properties = {k: v for k, v in entity.to_record().items() if v is not None}
        properties["id"] = entity_id
        if entity.natural_key:
            properties[NATURAL_KEY_PROPERTY] = self.collation.key(entity.natural_key)
        return properties

    def _projection(self, entity_type: EntityType, fields: Optional[Sequence[str]]) -> str:
        if fields is None:
            return "properties(n)"
        allowed = set(ENTITY_CLASSES[entity_type].__dataclass_fields__)
        unknown = [name for name in fields if name not in allowed]
        if unknown:
            raise ValueError(f"Unknown fields for {entity_type.value}: {unknown}")
        return "n {" + ", ".join([".id"] + [f".{name}" for name in fields]) + "}"

    def _read(self, entity_type: EntityType, query: str, **params) -> List[Dict[str, Any]]:
        def read_tx(tx):
            return [record["record"] for record in tx.run(query, **params)]

        with self._translate_errors(entity_type):
            with self._session() as session:
                return session.execute_read(read_tx)

    # ---------------------- Public queries ------------------------
    def get_by_id(self, entity_type: EntityType, entity_id: str) -> Optional[CatalogEntity]:
        query = f"MATCH (n:{node_label(entity_type)} {{id: $id}}) RETURN properties(n) AS record LIMIT 1"
        records = self._read(entity_type, query, id=entity_id)
        return self._to_entity(entity_type, records[0]) if records else None

    def list_all(
        self,
        entity_type: EntityType,
        fields: Optional[Sequence[str]] = None,
        sort_by: Optional[str] = None,
    ) -> List[CatalogEntity]:
        query = f"MATCH (n:{node_label(entity_type)}) RETURN {self._projection(entity_type, fields)} AS record"
        if sort_by:
            self._projection(entity_type, [sort_by])
            query += f" ORDER BY n.{sort_by} ASC"
        logger.debug(f"Listing {entity_type.value} records")
        return [self._to_entity(entity_type, record) for record in self._read(entity_type, query)]

    def find_by_reference(
        self,
        entity_type: EntityType,
        field: str,
        referenced_id: str,
        fields: Optional[Sequence[str]] = None,
    ) -> List[CatalogEntity]:
        self._projection(entity_type, [field])
        query = (
            f"MATCH (n:{node_label(entity_type)}) WHERE n.{field} = $ref "
            f"RETURN {self._projection(entity_type, fields)} AS record"
        )
        return [self._to_entity(entity_type, record) for record in self._read(entity_type, query, ref=referenced_id)]

    def find_by_natural_key(self, entity_type: EntityType, value: str) -> Optional[CatalogEntity]:
        query = (
            f"MATCH (n:{node_label(entity_type)} {{{NATURAL_KEY_PROPERTY}: $key}}) "
            "RETURN properties(n) AS record LIMIT 1"
        )
        records = self._read(entity_type, query, key=self.collation.key(value))
        return self._to_entity(entity_type, records[0]) if records else None

    def insert(self, entity: CatalogEntity) -> str:
        entity_type = entity.entity_type
        entity_id = new_identifier()
        query = f"CREATE (n:{node_label(entity_type)}) SET n = $props RETURN n.id AS id"

        def insert_tx(tx):
            return tx.run(query, props=self._properties(entity, entity_id)).single()["id"]

        with self._translate_errors(entity_type):
            with self._session() as session:
                return session.execute_write(insert_tx)

    def replace(self, entity: CatalogEntity) -> bool:
        entity_type = entity.entity_type
        query = f"MATCH (n:{node_label(entity_type)} {{id: $id}}) SET n = $props RETURN n.id AS id"

        def replace_tx(tx):
            return tx.run(query, id=entity.id, props=self._properties(entity, entity.id)).single() is not None

        with self._translate_errors(entity_type):
            with self._session() as session:
                return session.execute_write(replace_tx)

    def delete(self, entity_type: EntityType, entity_id: str) -> bool:
        query = f"MATCH (n:{node_label(entity_type)} {{id: $id}}) DELETE n RETURN count(*) AS deleted"

        def delete_tx(tx):
            return tx.run(query, id=entity_id).single()["deleted"] > 0

        with self._translate_errors(entity_type):
            with self._session() as session:
                return session.execute_write(delete_tx)

    def count(self, entity_type: EntityType, filters: Optional[Dict[str, Any]] = None) -> int:
        filters = filters or {}
        self._projection(entity_type, list(filters))
        where = " AND ".join(f"n.{name} = ${name}" for name in filters)
        query = f"MATCH (n:{node_label(entity_type)})"
        if where:
            query += f" WHERE {where}"
        query += " RETURN count(n) AS record"
        return self._read(entity_type, query, **filters)[0]

    def ping(self) -> bool:
        def ping_tx(tx):
            result = tx.run("RETURN 1 AS record")
            return result.single()["record"]

        with self._translate_errors():
            with self._session() as session:
                return session.execute_read(ping_tx) == 1
