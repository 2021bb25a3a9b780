import asyncio
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

import main
from config.settings import CatalogSettings
from domain.exceptions import StoreUnavailableError
from domain.repositories import CatalogRepository
from infrastructure.database import InMemoryCatalogRepository
from main import app


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(main, "settings", CatalogSettings(store="memory"))
    with TestClient(app) as test_client:
        yield test_client


def create(client, path, fields):
    response = client.post(path, json=fields, follow_redirects=False)
    assert response.status_code == 303
    return response.headers["location"]


class TestCatalogAPI:
    def test_root_endpoint(self, client):
        # Act
        response = client.get("/")

        # Assert
        assert response.status_code == 200
        assert response.json() == {"message": "Local Library Catalog API"}

    def test_health_check_endpoint(self, client):
        # Act
        response = client.get("/health")

        # Assert
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "store": "InMemoryCatalogRepository", "error": None}

    def test_health_check_pings_store_off_the_event_loop(self, client):
        # Arrange
        ran_in_event_loop = []

        def ping():
            try:
                asyncio.get_running_loop()
                ran_in_event_loop.append(True)
            except RuntimeError:
                ran_in_event_loop.append(False)
            return True

        mock_repository = Mock(spec=CatalogRepository)
        mock_repository.ping.side_effect = ping
        app.state.repository = mock_repository

        # Act
        response = client.get("/health")

        # Assert
        assert response.json()["status"] == "healthy"
        assert ran_in_event_loop == [False]

    def test_health_check_reports_unreachable_store(self, client):
        # Arrange
        mock_repository = Mock(spec=CatalogRepository)
        mock_repository.ping.side_effect = StoreUnavailableError("Catalog store is unavailable")
        app.state.repository = mock_repository

        # Act
        response = client.get("/health")

        # Assert
        assert response.status_code == 200
        assert response.json()["status"] == "unhealthy"
        assert response.json()["error"] == "Catalog store is unavailable"

    def test_store_comes_from_module_settings(self, monkeypatch):
        # Arrange
        monkeypatch.setenv("CATALOG_STORE", "neo4j")
        monkeypatch.setattr(main, "settings", CatalogSettings(store="memory"))

        # Act
        with TestClient(app):
            repository = app.state.repository

        # Assert
        assert isinstance(repository, InMemoryCatalogRepository)

    def test_catalog_home_counts(self, client):
        # Arrange
        create(client, "/catalog/genre/create", {"name": "Fantasy"})

        # Act
        response = client.get("/catalog")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["view"] == "index"
        assert data["data"]["counts"]["genres"] == 1
        assert data["data"]["counts"]["books"] == 0

    def test_list_genres(self, client):
        # Arrange
        create(client, "/catalog/genre/create", {"name": "Poetry"})
        create(client, "/catalog/genre/create", {"name": "Fantasy"})

        # Act
        response = client.get("/catalog/genres")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["view"] == "genre_list"
        assert [item["name"] for item in data["data"]["items"]] == ["Fantasy", "Poetry"]

    def test_unknown_collection_is_not_found(self, client):
        # Act
        response = client.get("/catalog/magazines")

        # Assert
        assert response.status_code == 404
        assert response.json()["view"] == "error"
        assert response.json()["kind"] == "NotFound"

    def test_create_form(self, client):
        # Act
        response = client.get("/catalog/genre/create")

        # Assert
        assert response.status_code == 200
        assert response.json() == {
            "view": "genre_form",
            "data": {"title": "Create Genre", "entity": None, "errors": []},
        }

    def test_create_redirects_to_detail(self, client):
        # Act
        location = create(client, "/catalog/genre/create", {"name": "Fantasy"})
        response = client.get(location)

        # Assert
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["entity"]["name"] == "Fantasy"
        assert data["entity"]["url"] == location
        assert data["related"] == []

    def test_duplicate_create_redirects_to_existing(self, client):
        # Arrange
        location = create(client, "/catalog/genre/create", {"name": "Fiction"})

        # Act & Assert
        assert create(client, "/catalog/genre/create", {"name": "FICTION"}) == location
        assert client.get("/catalog").json()["data"]["counts"]["genres"] == 1

    def test_invalid_create_rerenders_form(self, client):
        # Act
        response = client.post("/catalog/genre/create", json={"name": "ab"}, follow_redirects=False)

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["view"] == "genre_form"
        assert data["data"]["errors"] == ["Genre name must contain at least 3 characters"]

    def test_create_without_body_rerenders_form(self, client):
        response = client.post("/catalog/genre/create", follow_redirects=False)
        assert response.status_code == 200
        assert response.json()["data"]["errors"] == ["Genre name must contain at least 3 characters"]

    def test_detail_of_malformed_id(self, client):
        # Act
        response = client.get("/catalog/genre/not-a-valid-id")

        # Assert
        assert response.status_code == 404
        assert response.json() == {"view": "error", "kind": "NotFound", "message": "invalid Genre ID"}

    def test_update(self, client):
        # Arrange
        location = create(client, "/catalog/genre/create", {"name": "Fantasy"})

        # Act
        form = client.get(f"{location}/update")
        updated = create(client, f"{location}/update", {"name": "High Fantasy"})

        # Assert
        assert form.json()["data"]["entity"]["name"] == "Fantasy"
        assert updated == location
        assert client.get(location).json()["data"]["entity"]["name"] == "High Fantasy"

    def test_author_dates_round_trip(self, client):
        # Act
        location = create(
            client,
            "/catalog/author/create",
            {"first_name": "Isaac", "family_name": "Asimov", "date_of_birth": "1920-01-02", "date_of_death": "1992-04-06"},
        )
        entity = client.get(location).json()["data"]["entity"]

        # Assert
        assert entity["name"] == "Asimov, Isaac"
        assert entity["date_of_birth"] == "1920-01-02"
        assert entity["lifespan"] == "1/2/1920 - 4/6/1992"

    def test_fantasy_genre_lifecycle(self, client):
        # Arrange
        genre = create(client, "/catalog/genre/create", {"name": "Fantasy"})
        author = create(client, "/catalog/author/create", {"first_name": "Patrick", "family_name": "Rothfuss"})
        book = create(
            client,
            "/catalog/book/create",
            {
                "title": "The Name of the Wind",
                "author": author.rsplit("/", 1)[-1],
                "genre": genre.rsplit("/", 1)[-1],
                "summary": "I have stolen princesses back from sleeping barrow kings.",
                "isbn": "9781473211896",
            },
        )

        # Act: the genre cannot go while the book references it
        confirmation = client.get(f"{genre}/delete")
        blocked = client.post(f"{genre}/delete", follow_redirects=False)

        # Assert
        assert [item["url"] for item in confirmation.json()["data"]["referencing"]] == [book]
        assert blocked.status_code == 200
        assert blocked.json()["view"] == "genre_delete"

        # Act: delete the book, then the genre
        assert create(client, f"{book}/delete", {}) == "/catalog/books"
        assert create(client, f"{genre}/delete", {}) == "/catalog/genres"

        # Assert
        assert client.get(genre).status_code == 404
        assert create(client, f"{genre}/delete", {}) == "/catalog/genres"

    def test_book_detail_includes_author(self, client):
        # Arrange
        genre = create(client, "/catalog/genre/create", {"name": "Science Fiction"})
        author = create(client, "/catalog/author/create", {"first_name": "Ben", "family_name": "Bova"})
        book = create(
            client,
            "/catalog/book/create",
            {
                "title": "Apes and Angels",
                "author": author.rsplit("/", 1)[-1],
                "genre": genre.rsplit("/", 1)[-1],
                "summary": "Humankind headed out to the stars.",
                "isbn": "9780765379528",
            },
        )
        create(
            client,
            "/catalog/bookinstance/create",
            {"book": book.rsplit("/", 1)[-1], "imprint": "Tor, 2016.", "status": "Available"},
        )

        # Act
        data = client.get(book).json()["data"]

        # Assert
        assert data["author"]["name"] == "Bova, Ben"
        assert data["genre"]["name"] == "Science Fiction"
        assert data["related"][0]["detail"] == "Available"
