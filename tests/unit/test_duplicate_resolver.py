from unittest.mock import Mock

from domain.entities import BookInstance, EntityType, Genre
from domain.repositories import CatalogRepository
from domain.services import DuplicateResolver


class TestDuplicateResolver:
    def setup_method(self):
        self.mock_repository = Mock(spec=CatalogRepository)
        self.resolver = DuplicateResolver(self.mock_repository)

    def test_find_existing_looks_up_natural_key(self):
        # Arrange
        existing = Genre(name="Fiction", id="g1")
        self.mock_repository.find_by_natural_key.return_value = existing

        # Act
        result = self.resolver.find_existing(Genre(name="fiction"))

        # Assert
        assert result == existing
        self.mock_repository.find_by_natural_key.assert_called_once_with(EntityType.GENRE, "fiction")

    def test_type_without_natural_key_never_resolves(self):
        # Act
        result = self.resolver.find_existing(BookInstance(book="b1", imprint="Gollancz"))

        # Assert
        assert result is None
        self.mock_repository.find_by_natural_key.assert_not_called()

    def test_empty_key_never_resolves(self):
        assert self.resolver.find_existing(Genre(name="")) is None
        self.mock_repository.find_by_natural_key.assert_not_called()

    def test_find_conflicting_ignores_the_record_itself(self):
        # Arrange
        self.mock_repository.find_by_natural_key.return_value = Genre(name="Fiction", id="g1")

        # Act & Assert
        assert self.resolver.find_conflicting(Genre(name="FICTION", id="g1")) is None
        assert self.resolver.find_conflicting(Genre(name="FICTION", id="g2")).id == "g1"
