from datetime import date
from unittest.mock import MagicMock, Mock, patch

import pytest
from neo4j.exceptions import ConstraintError, Neo4jError, ServiceUnavailable
from neo4j.time import Date

from domain.entities import Author, EntityType, Genre, is_valid_identifier
from domain.exceptions import DuplicateKeyError, StoreError, StoreUnavailableError
from infrastructure.database import Neo4jCatalogRepository
from infrastructure.database.neo4j_repository import schema_statements


class TestNeo4jCatalogRepository:
    def setup_method(self):
        self.repository = Neo4jCatalogRepository(uri="bolt://localhost:7687", user="neo4j", password="password")

    def connect_with_session(self, mock_graph_database):
        mock_driver = Mock()
        # __enter__/__exit__ を持つ擬似コンテキストを用意
        mock_session_cm = MagicMock()
        mock_session = Mock()
        mock_session_cm.__enter__.return_value = mock_session
        mock_session_cm.__exit__.return_value = None
        mock_driver.session.return_value = mock_session_cm
        mock_graph_database.driver.return_value = mock_driver
        self.repository.connect()
        return mock_session

    @patch("infrastructure.database.neo4j_repository.GraphDatabase")
    def test_connect_success(self, mock_graph_database):
        # Arrange
        mock_driver = Mock()
        mock_graph_database.driver.return_value = mock_driver

        # Act
        self.repository.connect()

        # Assert
        assert self.repository.driver == mock_driver
        mock_graph_database.driver.assert_called_once_with("bolt://localhost:7687", auth=("neo4j", "password"))
        mock_driver.verify_connectivity.assert_called_once()

    @patch("infrastructure.database.neo4j_repository.GraphDatabase")
    def test_connect_failure(self, mock_graph_database):
        # Arrange
        mock_graph_database.driver.return_value.verify_connectivity.side_effect = ServiceUnavailable("down")

        # Act & Assert
        with pytest.raises(StoreUnavailableError):
            self.repository.connect()

    def test_close_connection(self):
        # Arrange
        mock_driver = Mock()
        self.repository.driver = mock_driver

        # Act
        self.repository.close()

        # Assert
        mock_driver.close.assert_called_once()

    def test_queries_without_connection_fail(self):
        with pytest.raises(StoreUnavailableError):
            self.repository.get_by_id(EntityType.GENRE, "g1")

    def test_schema_statements(self):
        # Act
        statements = schema_statements()

        # Assert
        assert "CREATE CONSTRAINT genre_id_unique IF NOT EXISTS FOR (n:Genre) REQUIRE n.id IS UNIQUE" in statements
        assert (
            "CREATE CONSTRAINT book_natural_key_unique IF NOT EXISTS FOR (n:Book) REQUIRE n.natural_key IS UNIQUE"
            in statements
        )
        assert not any("bookinstance_natural_key" in statement for statement in statements)
        assert len(statements) == 7

    @patch("infrastructure.database.neo4j_repository.GraphDatabase")
    def test_ensure_schema_runs_every_statement(self, mock_graph_database):
        # Arrange
        mock_session = self.connect_with_session(mock_graph_database)

        # Act
        self.repository.ensure_schema()

        # Assert
        assert mock_session.run.call_count == len(schema_statements())

    @patch("infrastructure.database.neo4j_repository.GraphDatabase")
    def test_get_by_id(self, mock_graph_database):
        # Arrange
        mock_session = self.connect_with_session(mock_graph_database)
        mock_session.execute_read.return_value = [{"id": "g1", "name": "Fantasy", "natural_key": "fantasy"}]

        # Act
        result = self.repository.get_by_id(EntityType.GENRE, "g1")

        # Assert
        assert result == Genre(name="Fantasy", id="g1")

    @patch("infrastructure.database.neo4j_repository.GraphDatabase")
    def test_get_by_id_not_found(self, mock_graph_database):
        # Arrange
        mock_session = self.connect_with_session(mock_graph_database)
        mock_session.execute_read.return_value = []

        # Act & Assert
        assert self.repository.get_by_id(EntityType.GENRE, "missing") is None

    @patch("infrastructure.database.neo4j_repository.GraphDatabase")
    def test_temporal_values_are_converted(self, mock_graph_database):
        # Arrange
        mock_session = self.connect_with_session(mock_graph_database)
        mock_session.execute_read.return_value = [
            {"id": "a1", "first_name": "Isaac", "family_name": "Asimov", "date_of_birth": Date(1920, 1, 2)}
        ]

        # Act
        result = self.repository.get_by_id(EntityType.AUTHOR, "a1")

        # Assert
        assert isinstance(result, Author)
        assert result.date_of_birth == date(1920, 1, 2)

    @patch("infrastructure.database.neo4j_repository.GraphDatabase")
    def test_list_all_projects_and_sorts(self, mock_graph_database):
        # Arrange
        mock_session = self.connect_with_session(mock_graph_database)
        mock_tx = Mock()
        mock_tx.run.return_value = iter([{"record": {"id": "g1", "name": "Fantasy"}}])
        mock_session.execute_read.side_effect = lambda fn: fn(mock_tx)

        # Act
        result = self.repository.list_all(EntityType.GENRE, fields=("name",), sort_by="name")

        # Assert
        assert result == [Genre(name="Fantasy", id="g1")]
        query = mock_tx.run.call_args[0][0]
        assert "n {.id, .name}" in query
        assert query.endswith("ORDER BY n.name ASC")

    def test_unknown_projection_field_is_rejected(self):
        with pytest.raises(ValueError):
            self.repository._projection(EntityType.GENRE, ["name} DETACH DELETE n //"])

    @patch("infrastructure.database.neo4j_repository.GraphDatabase")
    def test_insert_stores_collation_key(self, mock_graph_database):
        # Arrange
        mock_session = self.connect_with_session(mock_graph_database)
        mock_tx = Mock()
        mock_tx.run.return_value.single.side_effect = lambda: {"id": mock_tx.run.call_args[1]["props"]["id"]}
        mock_session.execute_write.side_effect = lambda fn: fn(mock_tx)

        # Act
        genre_id = self.repository.insert(Genre(name="Fiction"))

        # Assert
        props = mock_tx.run.call_args[1]["props"]
        assert is_valid_identifier(genre_id)
        assert props == {"name": "Fiction", "id": genre_id, "natural_key": "fiction"}

    @patch("infrastructure.database.neo4j_repository.GraphDatabase")
    def test_constraint_violation_is_duplicate_key(self, mock_graph_database):
        # Arrange
        mock_session = self.connect_with_session(mock_graph_database)
        mock_session.execute_write.side_effect = ConstraintError("already exists")

        # Act & Assert
        with pytest.raises(DuplicateKeyError):
            self.repository.insert(Genre(name="Fiction"))

    @patch("infrastructure.database.neo4j_repository.GraphDatabase")
    def test_count(self, mock_graph_database):
        # Arrange
        mock_session = self.connect_with_session(mock_graph_database)
        mock_tx = Mock()
        mock_tx.run.return_value = iter([{"record": 3}])
        mock_session.execute_read.side_effect = lambda fn: fn(mock_tx)

        # Act
        result = self.repository.count(EntityType.BOOK_INSTANCE, {"status": "Available"})

        # Assert
        assert result == 3
        query, params = mock_tx.run.call_args[0][0], mock_tx.run.call_args[1]
        assert "WHERE n.status = $status" in query
        assert params == {"status": "Available"}

    @patch("infrastructure.database.neo4j_repository.GraphDatabase")
    def test_lost_connection_is_store_unavailable(self, mock_graph_database):
        # Arrange
        mock_session = self.connect_with_session(mock_graph_database)
        mock_session.execute_read.side_effect = ServiceUnavailable("connection lost")

        # Act & Assert
        with pytest.raises(StoreUnavailableError):
            self.repository.list_all(EntityType.BOOK)

    @patch("infrastructure.database.neo4j_repository.GraphDatabase")
    def test_query_failure_is_store_error(self, mock_graph_database):
        # Arrange
        mock_session = self.connect_with_session(mock_graph_database)
        mock_session.execute_read.side_effect = Neo4jError("syntax error")

        # Act & Assert
        with pytest.raises(StoreError):
            self.repository.find_by_natural_key(EntityType.GENRE, "Fantasy")
