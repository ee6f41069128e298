"""
Tests for request validation models.
"""

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from catalog.dates import utcnow
from catalog.models import (
    AuthorListOptions, AuthorLookup, AuthorReference, AuthorUpdate, BookData,
    BookInstanceData, BookListOptions, BookStatus, GenreReference,
)

AUTHOR_ID = "5f8d0d55b54764421b7156c3"


class TestAuthorModels:
    """Test cases for author payloads."""

    def test_valid_author(self):
        author = AuthorReference(firstName="Isaac", lastName="Asimov", dateOfBirth="1920-01-02")
        assert author.to_document() == {
            "firstName": "Isaac",
            "lastName": "Asimov",
            "dateOfBirth": datetime(1920, 1, 2),
        }

    def test_name_too_short(self):
        with pytest.raises(ValidationError):
            AuthorReference(firstName="Al", lastName="Asimov", dateOfBirth="1920-01-02")

    def test_birth_in_future(self):
        tomorrow = (utcnow() + timedelta(days=2)).date().isoformat()
        with pytest.raises(ValidationError):
            AuthorReference(firstName="Isaac", lastName="Asimov", dateOfBirth=tomorrow)

    def test_death_before_birth(self):
        with pytest.raises(ValidationError, match="dateOfDeath"):
            AuthorReference(
                firstName="Isaac", lastName="Asimov",
                dateOfBirth="1920-01-02", dateOfDeath="1910-01-01",
            )

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            AuthorReference(firstName="Isaac", lastName="Asimov", dateOfBirth="1920-01-02", nickname="Ike")

    def test_empty_update_rejected(self):
        with pytest.raises(ValidationError):
            AuthorUpdate()

    def test_empty_lookup_rejected(self):
        with pytest.raises(ValidationError):
            AuthorLookup()


class TestBookModels:
    """Test cases for book payloads."""

    def test_author_reference_required(self):
        with pytest.raises(ValidationError, match="authorId"):
            BookData(title="Foundation", summary="Psychohistory", isbn="9780553293357")

    def test_author_id_conflicts_with_descriptor(self):
        with pytest.raises(ValidationError, match="conflicts"):
            BookData(
                title="Foundation", summary="Psychohistory", isbn="9780553293357",
                authorId=AUTHOR_ID,
                author={"firstName": "Isaac", "lastName": "Asimov", "dateOfBirth": "1920-01-02"},
            )

    def test_invalid_isbn(self):
        with pytest.raises(ValidationError, match="isbn"):
            BookData(title="Foundation", summary="Psychohistory", isbn="12345", authorId=AUTHOR_ID)

    @pytest.mark.parametrize("isbn", ["9780553293357", "0-553-29335-4", "ISBN 978-0-553-29335-7"])
    def test_valid_isbns(self, isbn):
        book = BookData(title="Foundation", summary="Psychohistory", isbn=isbn, authorId=AUTHOR_ID)
        assert book.isbn == isbn

    def test_genre_id_list(self):
        book = BookData(
            title="Foundation", summary="Psychohistory", isbn="9780553293357",
            authorId=AUTHOR_ID, genreId=[AUTHOR_ID, AUTHOR_ID],
        )
        assert book.genre_id == [AUTHOR_ID, AUTHOR_ID]

    def test_genre_descriptor(self):
        book = BookData(
            title="Foundation", summary="Psychohistory", isbn="9780553293357",
            authorId=AUTHOR_ID, genre={"name": "Science Fiction"},
        )
        assert book.genre == GenreReference(name="Science Fiction")

    def test_malformed_id(self):
        with pytest.raises(ValidationError):
            BookData(title="Foundation", summary="Psychohistory", isbn="9780553293357", authorId="123")


class TestBookInstanceModels:
    """Test cases for book instance payloads."""

    def test_status_defaults_to_maintenance(self):
        instance = BookInstanceData(bookId=AUTHOR_ID, publisher="Gnome Press")
        assert instance.status == BookStatus.MAINTENANCE.value

    def test_back_in_past_rejected(self):
        with pytest.raises(ValidationError):
            BookInstanceData(bookId=AUTHOR_ID, publisher="Gnome Press", back="2000-01-01")

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            BookInstanceData(bookId=AUTHOR_ID, publisher="Gnome Press", status="Lost")


class TestListOptions:
    """Test cases for list options."""

    def test_only_and_omit_are_exclusive(self):
        with pytest.raises(ValidationError):
            AuthorListOptions(only=["_id"], omit=["__v"])

    def test_unknown_projection_field(self):
        with pytest.raises(ValidationError):
            AuthorListOptions(only=["title"])

    def test_unknown_sort_field(self):
        with pytest.raises(ValidationError):
            BookListOptions(sort={"firstName": 1})

    def test_negative_skip(self):
        with pytest.raises(ValidationError):
            AuthorListOptions(skip=-1)

    def test_sort_words_accepted(self):
        assert BookListOptions(sort={"title": "desc"}).sort == {"title": "desc"}
