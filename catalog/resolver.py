"""
Reference resolver.

Turns direct ids (authorId, genreId, bookId) or descriptor objects (author,
genre, book) into stored ObjectIds. It only looks entities up; it never
creates them.
"""

from typing import Any, Dict, List, Optional, Sequence, Union

import structlog
from bson import ObjectId

from catalog.database import CatalogDatabase, to_object_id
from catalog.entities import AUTHOR, BOOK, GENRE, EntityType
from catalog.errors import CatalogError, NotFoundError
from catalog.models import (
    AuthorListOptions, AuthorLookup, AuthorReference, BookData, BookReference,
    GenreListOptions, GenreReference,
)
from catalog.query import compose_author_query, compose_genre_query

logger = structlog.get_logger(__name__)

AuthorDescriptor = Union[AuthorReference, AuthorLookup]
GenreIdInput = Union[str, Sequence[str], None]
GenreDescriptorInput = Union[GenreReference, Sequence[GenreReference], None]


class ReferenceResolver:
    """Resolves related-entity references for one request."""

    def __init__(self, db: CatalogDatabase):
        self.db = db

    async def _id_exists(self, entity: EntityType, entity_id: Any) -> Optional[ObjectId]:
        object_id = to_object_id(entity_id)
        if await self.db.exists(entity, {"_id": object_id}):
            return object_id
        return None

    async def _find_exact(self, entity: EntityType, descriptor: Dict[str, Any]) -> Optional[ObjectId]:
        document = await self.db.find_one(entity, descriptor, {"_id": 1})
        return document["_id"] if document else None

    # -- authors -----------------------------------------------------------

    async def lookup_author(self, descriptor: AuthorDescriptor) -> Optional[ObjectId]:
        """
        Find the id of the first author matching a descriptor.

        Exact descriptors (concrete dates) match field for field; lookup
        descriptors go through the author list query with limit 1.

        Returns:
            Author id or None when nothing matches
        """
        if isinstance(descriptor, AuthorReference):
            return await self._find_exact(AUTHOR, descriptor.to_document())

        options = AuthorListOptions(
            first_name=descriptor.first_name,
            last_name=descriptor.last_name,
            date_of_birth=descriptor.date_of_birth,
            date_of_death=descriptor.date_of_death,
            only=["_id"],
            limit=1,
        )
        documents = await self.db.find(AUTHOR, compose_author_query(options))
        return documents[0]["_id"] if documents else None

    async def resolve_author(
        self,
        author_id: Optional[str] = None,
        author: Optional[AuthorDescriptor] = None,
        required: bool = True,
    ) -> Optional[ObjectId]:
        """
        Resolve an author reference.

        Args:
            author_id: Direct author id
            author: Author descriptor
            required: Fail when neither reference is given

        Returns:
            Author id, or None when nothing was given and it is optional

        Raises:
            NotFoundError: A reference was given but matches no author
        """
        if author_id is None and author is None:
            if required:
                raise CatalogError("Author reference is required")
            return None

        resolved = None
        if author_id is not None:
            resolved = await self._id_exists(AUTHOR, author_id)
        if resolved is None and author is not None:
            resolved = await self.lookup_author(author)

        if resolved is None:
            raise NotFoundError("Cannot find author")
        return resolved

    # -- genres ------------------------------------------------------------

    async def _find_genres(self, or_clauses: List[Dict[str, Any]]) -> List[Dict]:
        query = compose_genre_query(GenreListOptions(), or_clauses=or_clauses)
        return await self.db.find(GENRE, query)

    async def lookup_genres(
        self,
        genre_id: GenreIdInput = None,
        genre: GenreDescriptorInput = None,
    ) -> Optional[List[ObjectId]]:
        """
        Find genre ids for a single or multi-valued reference.

        A list is only accepted when every element is found. Ids come back
        in the order the client gave them.

        Returns:
            Genre ids, or None when the reference does not resolve
        """
        if genre_id is not None:
            ids = [genre_id] if isinstance(genre_id, str) else list(genre_id)
            object_ids = [to_object_id(i) for i in ids]
            found = await self._find_genres([{"_id": object_id} for object_id in object_ids])
            if len(found) == len(set(object_ids)):
                return object_ids
            return None

        if genre is not None:
            descriptors = [genre] if isinstance(genre, GenreReference) else list(genre)
            found = await self._find_genres([{"name": d.name} for d in descriptors])
            if len(found) != len({d.name for d in descriptors}):
                return None
            by_name = {document["name"]: document["_id"] for document in found}
            return [by_name[d.name] for d in descriptors]

        return None

    async def resolve_genres(
        self,
        genre_id: GenreIdInput = None,
        genre: GenreDescriptorInput = None,
    ) -> Optional[List[ObjectId]]:
        """
        Resolve a genre reference.

        Returns:
            Genre ids, or None when no reference was given

        Raises:
            NotFoundError: A reference was given but not every genre exists
        """
        if genre_id is None and genre is None:
            return None
        resolved = await self.lookup_genres(genre_id, genre)
        if resolved is None:
            raise NotFoundError("Cannot find genre")
        return resolved

    # -- books -------------------------------------------------------------

    async def resolve_book_fields(self, payload: Union[BookData, BookReference]) -> Dict[str, Any]:
        """
        Build the stored book fields from a payload carrying author/genre references.

        Returns:
            Mapping with title, author, summary, isbn and genre
        """
        author = await self.resolve_author(payload.author_id, payload.author)
        genre = await self.resolve_genres(payload.genre_id, payload.genre)
        return {
            "title": payload.title,
            "author": author,
            "summary": payload.summary,
            "isbn": payload.isbn,
            "genre": genre or [],
        }

    async def resolve_books(self, payloads: Sequence[BookData]) -> List[Dict[str, Any]]:
        """
        Resolve the references of every book in a batch.

        The whole batch fails on the first book whose author or genre cannot
        be resolved.
        """
        books = []
        for index, payload in enumerate(payloads):
            try:
                books.append(await self.resolve_book_fields(payload))
            except NotFoundError:
                logger.info("Batch reference resolution failed", index=index)
                raise
        return books

    async def lookup_book(self, descriptor: BookReference) -> Optional[ObjectId]:
        """Search an existing book matching a full descriptor (limit 1)."""
        fields = await self.resolve_book_fields(descriptor)
        book_filter = {
            "title": fields["title"],
            "author": fields["author"],
            "summary": fields["summary"],
            "isbn": fields["isbn"],
        }
        if descriptor.genre_id is not None or descriptor.genre is not None:
            book_filter["genre"] = {"$all": fields["genre"]}
        return await self._find_exact(BOOK, book_filter)

    async def resolve_book(
        self,
        book_id: Optional[str] = None,
        book: Optional[BookReference] = None,
        required: bool = True,
    ) -> Optional[ObjectId]:
        """
        Resolve a book reference.

        Raises:
            NotFoundError: A reference was given but matches no book, or its
                nested author/genre cannot be found
        """
        if book_id is None and book is None:
            if required:
                raise CatalogError("Book reference is required")
            return None

        resolved = None
        if book_id is not None:
            resolved = await self._id_exists(BOOK, book_id)
        if resolved is None and book is not None:
            resolved = await self.lookup_book(book)

        if resolved is None:
            raise NotFoundError("Cannot find book")
        return resolved
