"""
Tests for the reference resolver against an in-memory database.
"""

from datetime import datetime

import pytest
from bson import ObjectId

from catalog.entities import AUTHOR, BOOK, GENRE
from catalog.errors import CatalogError, NotFoundError
from catalog.models import AuthorLookup, AuthorReference, BookData, BookReference, GenreReference
from catalog.resolver import ReferenceResolver


@pytest.fixture
def resolver(catalog_db):
    return ReferenceResolver(catalog_db)


async def seed_author(catalog_db, **fields):
    document = {
        "__v": 0,
        "firstName": "Isaac",
        "lastName": "Asimov",
        "dateOfBirth": datetime(1920, 1, 2),
        "dateOfDeath": datetime(1992, 4, 6),
    }
    document.update(fields)
    return (await catalog_db.insert_one(AUTHOR, document))["_id"]


async def seed_genre(catalog_db, name):
    return (await catalog_db.insert_one(GENRE, {"__v": 0, "name": name}))["_id"]


class TestResolveAuthor:
    """Test cases for author resolution."""

    @pytest.mark.asyncio
    async def test_existing_id(self, resolver, catalog_db):
        author_id = await seed_author(catalog_db)
        assert await resolver.resolve_author(str(author_id)) == author_id

    @pytest.mark.asyncio
    async def test_missing_id(self, resolver):
        with pytest.raises(NotFoundError, match="Cannot find author"):
            await resolver.resolve_author(str(ObjectId()))

    @pytest.mark.asyncio
    async def test_exact_descriptor(self, resolver, catalog_db):
        author_id = await seed_author(catalog_db)
        descriptor = AuthorReference(
            firstName="Isaac", lastName="Asimov", dateOfBirth="1920-01-02", dateOfDeath="1992-04-06"
        )
        assert await resolver.resolve_author(author=descriptor) == author_id

    @pytest.mark.asyncio
    async def test_exact_descriptor_names_must_match(self, resolver, catalog_db):
        """Descriptor names are matched exactly, not as prefixes."""
        await seed_author(catalog_db)
        descriptor = AuthorReference(firstName="Isa", lastName="Asimov", dateOfBirth="1920-01-02")
        with pytest.raises(NotFoundError):
            await resolver.resolve_author(author=descriptor)

    @pytest.mark.asyncio
    async def test_descriptor_used_when_id_missing(self, resolver, catalog_db):
        author_id = await seed_author(catalog_db)
        descriptor = AuthorReference(
            firstName="Isaac", lastName="Asimov", dateOfBirth="1920-01-02", dateOfDeath="1992-04-06"
        )
        assert await resolver.resolve_author(str(ObjectId()), descriptor) == author_id

    @pytest.mark.asyncio
    async def test_required_reference(self, resolver):
        with pytest.raises(CatalogError):
            await resolver.resolve_author()

    @pytest.mark.asyncio
    async def test_optional_reference(self, resolver):
        assert await resolver.resolve_author(required=False) is None

    @pytest.mark.asyncio
    async def test_lookup_by_prefix_and_day(self, resolver, catalog_db):
        author_id = await seed_author(catalog_db)
        await seed_author(catalog_db, firstName="Ray", lastName="Bradbury", dateOfBirth=datetime(1920, 8, 22))
        lookup = AuthorLookup(firstName="Isa", dateOfBirth={"e": "1920-01-02"}, dateOfDeath={"lt": "2000-01-01"})
        assert await resolver.lookup_author(lookup) == author_id

    @pytest.mark.asyncio
    async def test_lookup_no_match(self, resolver, catalog_db):
        await seed_author(catalog_db)
        assert await resolver.lookup_author(AuthorLookup(lastName="Tolkien")) is None


class TestResolveGenres:
    """Test cases for genre resolution."""

    @pytest.mark.asyncio
    async def test_nothing_supplied(self, resolver):
        assert await resolver.resolve_genres() is None

    @pytest.mark.asyncio
    async def test_id_list_keeps_client_order(self, resolver, catalog_db):
        first = await seed_genre(catalog_db, "Fantasy")
        second = await seed_genre(catalog_db, "Horror")
        assert await resolver.resolve_genres([str(second), str(first)]) == [second, first]

    @pytest.mark.asyncio
    async def test_single_id(self, resolver, catalog_db):
        genre = await seed_genre(catalog_db, "Fantasy")
        assert await resolver.resolve_genres(str(genre)) == [genre]

    @pytest.mark.asyncio
    async def test_id_list_with_missing_id(self, resolver, catalog_db):
        genre = await seed_genre(catalog_db, "Fantasy")
        with pytest.raises(NotFoundError, match="Cannot find genre"):
            await resolver.resolve_genres([str(genre), str(ObjectId())])

    @pytest.mark.asyncio
    async def test_descriptor_list(self, resolver, catalog_db):
        fantasy = await seed_genre(catalog_db, "Fantasy")
        horror = await seed_genre(catalog_db, "Horror")
        genres = [GenreReference(name="Horror"), GenreReference(name="Fantasy")]
        assert await resolver.resolve_genres(genre=genres) == [horror, fantasy]

    @pytest.mark.asyncio
    async def test_descriptor_name_is_exact(self, resolver, catalog_db):
        await seed_genre(catalog_db, "Fantasy")
        with pytest.raises(NotFoundError):
            await resolver.resolve_genres(genre=GenreReference(name="Fan"))


class TestResolveBooks:
    """Test cases for book resolution."""

    @pytest.fixture
    def book_data(self):
        return {"title": "Foundation", "summary": "Psychohistory", "isbn": "9780553293357"}

    @pytest.mark.asyncio
    async def test_book_fields(self, resolver, catalog_db, book_data):
        author_id = await seed_author(catalog_db)
        genre = await seed_genre(catalog_db, "Science Fiction")
        payload = BookData(authorId=str(author_id), genreId=[str(genre)], **book_data)
        assert await resolver.resolve_book_fields(payload) == {
            **book_data, "author": author_id, "genre": [genre],
        }

    @pytest.mark.asyncio
    async def test_batch_fails_as_a_whole(self, resolver, catalog_db, book_data):
        author_id = await seed_author(catalog_db)
        payloads = [
            BookData(authorId=str(author_id), **book_data),
            BookData(authorId=str(ObjectId()), **book_data),
        ]
        with pytest.raises(NotFoundError, match="Cannot find author"):
            await resolver.resolve_books(payloads)

    @pytest.mark.asyncio
    async def test_book_descriptor(self, resolver, catalog_db, book_data):
        author_id = await seed_author(catalog_db)
        book = await catalog_db.insert_one(BOOK, {"__v": 0, "author": author_id, "genre": [], **book_data})
        descriptor = BookReference(author={"lastName": "Asimov"}, **book_data)
        assert await resolver.resolve_book(book=descriptor) == book["_id"]

    @pytest.mark.asyncio
    async def test_book_descriptor_without_match(self, resolver, catalog_db, book_data):
        author_id = await seed_author(catalog_db)
        await catalog_db.insert_one(BOOK, {"__v": 0, "author": author_id, "genre": [], **book_data})
        descriptor = BookReference(authorId=str(author_id), **{**book_data, "title": "Foundation and Empire"})
        with pytest.raises(NotFoundError, match="Cannot find book"):
            await resolver.resolve_book(book=descriptor)
