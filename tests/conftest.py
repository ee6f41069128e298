"""
Pytest configuration and shared fixtures.
"""

import os

# Must be set before the API config is imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from api.dependencies import get_database
from api.main import app
from catalog.database import CatalogDatabase


@pytest.fixture
def mongo_database():
    """Fresh in-memory MongoDB database for each test."""
    return AsyncMongoMockClient()["library_test"]


@pytest.fixture
def catalog_db(mongo_database):
    """Catalog database handle over the in-memory database."""
    return CatalogDatabase.from_database(mongo_database)


@pytest.fixture
def client(catalog_db):
    """Test client wired to the in-memory catalog database."""
    app.dependency_overrides[get_database] = lambda: catalog_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def author_payload():
    """Sample author creation body."""
    return {
        "firstName": "Isaac",
        "lastName": "Asimov",
        "dateOfBirth": "1920-01-02",
        "dateOfDeath": "1992-04-06",
    }


@pytest.fixture
def create_author(client):
    """Create an author through the API and return the stored document."""
    def _create(**fields):
        response = client.post("/authors", json=fields)
        assert response.status_code == 201, response.json()
        return response.json()["author"]
    return _create


@pytest.fixture
def create_genre(client):
    """Create a genre through the API and return the stored document."""
    def _create(name):
        response = client.post("/genres", json={"name": name})
        assert response.status_code == 201, response.json()
        return response.json()["genre"]
    return _create


@pytest.fixture
def create_book(client):
    """Create a book through the API and return the stored document."""
    def _create(**fields):
        body = {"summary": "A summary", "isbn": "9780553293357"}
        body.update(fields)
        response = client.post("/books", json=body)
        assert response.status_code == 201, response.json()
        return response.json()["book"]
    return _create
