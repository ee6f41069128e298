"""
Entity services.

Each service composes the query composer, the reference resolver and the
existence guard into the read and write operations exposed over HTTP.
Services return raw store documents; encoding is left to the API layer.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog
from bson import ObjectId

from catalog.database import CatalogDatabase, to_object_id
from catalog.dates import utcnow
from catalog.entities import AUTHOR, BOOK, BOOK_INSTANCE, GENRE, EntityType
from catalog.errors import NotFoundError
from catalog.fields import build_projection, visible_relations
from catalog.guard import ExistenceGuard
from catalog.models import (
    AuthorDetailOptions, AuthorListOptions, AuthorReference, AuthorUpdate,
    BookData, BookDetailOptions, BookInstanceData, BookInstanceDetailOptions,
    BookInstanceListOptions, BookInstanceUpdate, BookListOptions, BookUpdate,
    GenreDetailOptions, GenreListOptions, GenreUpdate,
)
from catalog.query import (
    compose_author_query, compose_book_instance_query, compose_book_query,
    compose_genre_query,
)
from catalog.resolver import ReferenceResolver

logger = structlog.get_logger(__name__)

VERSION_KEY = "__v"


class EntityService:
    """Operations shared by every entity type."""

    entity: EntityType

    def __init__(self, db: CatalogDatabase):
        self.db = db
        self.resolver = ReferenceResolver(db)
        self.guard = ExistenceGuard(db)

    async def get_document(self, entity_id: str, projection: Optional[Dict[str, int]] = None) -> Dict:
        """
        Load one document by id.

        Raises:
            NotFoundError: No document has this id
        """
        document = await self.db.find_by_id(self.entity, entity_id, projection)
        if document is None:
            raise NotFoundError(self.entity.not_found_message(entity_id))
        return document

    async def require_ids(self, ids: Sequence[str]) -> None:
        """
        Fail unless every id has a stored document.

        Raises:
            NotFoundError: Listing every missing id
        """
        missing = await self.db.missing_ids(self.entity, ids)
        if missing:
            raise NotFoundError(self.entity.many_not_found_message(missing))

    async def _insert(self, document: Dict[str, Any]) -> Dict:
        document = {VERSION_KEY: 0, **document}
        await self.db.insert_one(self.entity, document)
        logger.info("Created entity", entity=self.entity.name, id=str(document["_id"]))
        return document

    async def _insert_many(self, documents: List[Dict[str, Any]]) -> List[Dict]:
        documents = [{VERSION_KEY: 0, **document} for document in documents]
        await self.db.insert_many(self.entity, documents)
        logger.info("Created entities", entity=self.entity.name, count=len(documents))
        return documents

    async def _apply_update(self, entity_id: Any, merged: Dict[str, Any]) -> Dict:
        changes = {key: value for key, value in merged.items() if key not in ("_id", VERSION_KEY)}
        await self.db.update_one(self.entity, entity_id, changes)
        logger.info("Updated entity", entity=self.entity.name, id=str(entity_id))
        return await self.get_document(str(entity_id))

    async def _apply_updates(self, merged_documents: List[Dict[str, Any]]) -> int:
        updates: List[Tuple[Any, Dict[str, Any]]] = []
        for merged in merged_documents:
            changes = {key: value for key, value in merged.items() if key not in ("_id", VERSION_KEY)}
            updates.append((merged["_id"], changes))
        count = await self.db.bulk_update(self.entity, updates)
        logger.info("Updated entities", entity=self.entity.name, count=count)
        return count

    async def _reload(self, ids: Sequence[Any]) -> List[Dict]:
        object_ids = [to_object_id(i) for i in ids]
        documents = await self.db.find_many(self.entity, {"_id": {"$in": object_ids}})
        by_id = {document["_id"]: document for document in documents}
        return [by_id[object_id] for object_id in object_ids if object_id in by_id]

    async def delete(self, entity_id: str) -> Dict:
        """Delete one entity and return the removed document."""
        document = await self.get_document(entity_id)
        await self.db.delete_one(self.entity, document["_id"])
        logger.info("Deleted entity", entity=self.entity.name, id=entity_id)
        return document

    async def delete_many(self, ids: Sequence[str]) -> int:
        """Delete several entities after checking they all exist."""
        await self.require_ids(ids)
        count = await self.db.delete_many(self.entity, ids)
        logger.info("Deleted entities", entity=self.entity.name, count=count)
        return count

    # -- population --------------------------------------------------------

    async def _populate_author(self, book: Dict) -> None:
        if isinstance(book.get("author"), ObjectId):
            book["author"] = await self.db.find_by_id(AUTHOR, book["author"])

    async def _populate_genre(self, book: Dict) -> None:
        ids = book.get("genre")
        if not ids:
            return
        genres = await self.db.find_many(GENRE, {"_id": {"$in": list(ids)}})
        by_id = {genre["_id"]: genre for genre in genres}
        book["genre"] = [by_id[i] for i in ids if i in by_id]

    async def _populate_book(self, instance: Dict, show_author: bool, show_genre: bool) -> None:
        if not isinstance(instance.get("book"), ObjectId):
            return
        book = await self.db.find_by_id(BOOK, instance["book"])
        if book is not None:
            if show_author:
                await self._populate_author(book)
            if show_genre:
                await self._populate_genre(book)
        instance["book"] = book


class AuthorService(EntityService):
    entity = AUTHOR

    async def list(self, options: AuthorListOptions) -> List[Dict]:
        return await self.db.find(AUTHOR, compose_author_query(options))

    async def detail(self, author_id: str, options: AuthorDetailOptions) -> Tuple[Dict, Optional[List[Dict]]]:
        """
        Get one author, optionally with the books written by them.

        Returns:
            The author document and the book list (None unless requested)
        """
        author = await self.get_document(author_id, build_projection(AUTHOR.fields, options.only, options.omit))
        books = None
        if options.show_book_list:
            books = await self.db.find_many(
                BOOK, {"author": to_object_id(author_id)}, {"author": 0}, [BOOK.default_sort]
            )
        return author, books

    async def create(self, payload: AuthorReference) -> Dict:
        document = payload.to_document()
        await self.guard.check(AUTHOR, document)
        return await self._insert(document)

    async def create_many(self, payloads: Sequence[AuthorReference]) -> List[Dict]:
        documents = [payload.to_document() for payload in payloads]
        await self.guard.check_many(AUTHOR, documents)
        return await self._insert_many(documents)

    async def _merge(self, stored: Dict, update: AuthorUpdate) -> Dict:
        return {**stored, **update.to_document()}

    async def update(self, author_id: str, update: AuthorUpdate) -> Dict:
        stored = await self.get_document(author_id)
        merged = await self._merge(stored, update)
        await self.guard.check(AUTHOR, merged, exclude_id=stored["_id"])
        return await self._apply_update(stored["_id"], merged)

    async def update_many(self, updates: Sequence[Tuple[str, AuthorUpdate]]) -> Tuple[List[Dict], int]:
        """
        Update several authors in one bulk write.

        Returns:
            Updated documents and the number actually modified
        """
        ids = [author_id for author_id, _ in updates]
        await self.require_ids(ids)
        merged = [await self._merge(await self.get_document(i), u) for i, u in updates]
        await self.guard.check_many(AUTHOR, merged, [document["_id"] for document in merged])
        count = await self._apply_updates(merged)
        return await self._reload(ids), count


class BookService(EntityService):
    entity = BOOK

    async def _relation_filters(self, options: BookListOptions) -> Optional[Dict[str, Any]]:
        """Resolve list relation filters; None when a descriptor matches nothing."""
        filters: Dict[str, Any] = {}

        if options.author_id is not None:
            filters["author"] = to_object_id(options.author_id)
        elif options.author is not None:
            author = await self.resolver.lookup_author(options.author)
            if author is None:
                return None
            filters["author"] = author

        if options.genre_id is not None:
            if isinstance(options.genre_id, str):
                filters["genre"] = to_object_id(options.genre_id)
            else:
                filters["genre"] = [to_object_id(i) for i in options.genre_id]
        elif options.genre is not None:
            genres = await self.resolver.lookup_genres(genre=options.genre)
            if genres is None:
                return None
            filters["genre"] = genres

        return filters

    async def populate(self, books: List[Dict], show_author: bool, show_genre: bool, only=None, omit=None) -> None:
        relations = visible_relations(("author", "genre"), only, omit)
        for book in books:
            if show_author and "author" in relations:
                await self._populate_author(book)
            if show_genre and "genre" in relations:
                await self._populate_genre(book)

    async def list(self, options: BookListOptions) -> List[Dict]:
        filters = await self._relation_filters(options)
        if filters is None:
            logger.debug("Book list descriptor matched nothing")
            return []
        query = compose_book_query(options, author=filters.get("author"), genre=filters.get("genre"))
        books = await self.db.find(BOOK, query)
        await self.populate(books, options.show_author, options.show_genre, options.only, options.omit)
        return books

    async def detail(self, book_id: str, options: BookDetailOptions) -> Dict:
        book = await self.get_document(book_id, build_projection(BOOK.fields, options.only, options.omit))
        await self.populate([book], options.show_author, options.show_genre, options.only, options.omit)
        return book

    async def create(self, payload: BookData) -> Dict:
        document = await self.resolver.resolve_book_fields(payload)
        await self.guard.check(BOOK, document)
        return await self._insert(document)

    async def create_many(self, payloads: Sequence[BookData]) -> List[Dict]:
        documents = await self.resolver.resolve_books(payloads)
        await self.guard.check_many(BOOK, documents)
        return await self._insert_many(documents)

    async def _merge(self, stored: Dict, update: BookUpdate) -> Dict:
        merged = dict(stored)
        for name in ("title", "summary", "isbn"):
            value = getattr(update, name)
            if value is not None:
                merged[name] = value
        if update.author_id is not None or update.author is not None:
            merged["author"] = await self.resolver.resolve_author(update.author_id, update.author)
        if update.genre_id is not None or update.genre is not None:
            merged["genre"] = await self.resolver.resolve_genres(update.genre_id, update.genre)
        return merged

    async def update(self, book_id: str, update: BookUpdate) -> Dict:
        stored = await self.get_document(book_id)
        merged = await self._merge(stored, update)
        await self.guard.check(BOOK, merged, exclude_id=stored["_id"])
        return await self._apply_update(stored["_id"], merged)

    async def update_many(self, updates: Sequence[Tuple[str, BookUpdate]]) -> Tuple[List[Dict], int]:
        ids = [book_id for book_id, _ in updates]
        await self.require_ids(ids)
        merged = [await self._merge(await self.get_document(i), u) for i, u in updates]
        await self.guard.check_many(BOOK, merged, [document["_id"] for document in merged])
        count = await self._apply_updates(merged)
        return await self._reload(ids), count


class BookInstanceService(EntityService):
    entity = BOOK_INSTANCE

    async def populate(self, instances: List[Dict], options) -> None:
        if not options.show_book or "book" not in visible_relations(("book",), options.only, options.omit):
            return
        for instance in instances:
            await self._populate_book(instance, options.show_author, options.show_genre)

    async def list(self, options: BookInstanceListOptions) -> List[Dict]:
        book = None
        if options.book_id is not None:
            book = to_object_id(options.book_id)
        elif options.book is not None:
            try:
                book = await self.resolver.lookup_book(options.book)
            except NotFoundError:
                book = None
            if book is None:
                logger.debug("Book instance list descriptor matched nothing")
                return []

        instances = await self.db.find(BOOK_INSTANCE, compose_book_instance_query(options, book=book))
        await self.populate(instances, options)
        return instances

    async def detail(self, instance_id: str, options: BookInstanceDetailOptions) -> Dict:
        projection = build_projection(BOOK_INSTANCE.fields, options.only, options.omit)
        instance = await self.get_document(instance_id, projection)
        await self.populate([instance], options)
        return instance

    async def _build(self, payload: BookInstanceData) -> Dict:
        return {
            "book": await self.resolver.resolve_book(payload.book_id, payload.book),
            "publisher": payload.publisher,
            "status": payload.status,
            "back": payload.back or utcnow(),
        }

    async def create(self, payload: BookInstanceData) -> Dict:
        document = await self._build(payload)
        await self.guard.check(BOOK_INSTANCE, document)
        return await self._insert(document)

    async def create_many(self, payloads: Sequence[BookInstanceData]) -> List[Dict]:
        documents = [await self._build(payload) for payload in payloads]
        await self.guard.check_many(BOOK_INSTANCE, documents)
        return await self._insert_many(documents)

    async def _merge(self, stored: Dict, update: BookInstanceUpdate) -> Dict:
        merged = dict(stored)
        for name in ("publisher", "status", "back"):
            value = getattr(update, name)
            if value is not None:
                merged[name] = value
        if update.book_id is not None or update.book is not None:
            merged["book"] = await self.resolver.resolve_book(update.book_id, update.book)
        return merged

    async def update(self, instance_id: str, update: BookInstanceUpdate) -> Dict:
        stored = await self.get_document(instance_id)
        merged = await self._merge(stored, update)
        await self.guard.check(BOOK_INSTANCE, merged, exclude_id=stored["_id"])
        return await self._apply_update(stored["_id"], merged)

    async def update_many(self, updates: Sequence[Tuple[str, BookInstanceUpdate]]) -> Tuple[List[Dict], int]:
        ids = [instance_id for instance_id, _ in updates]
        await self.require_ids(ids)
        merged = [await self._merge(await self.get_document(i), u) for i, u in updates]
        await self.guard.check_many(BOOK_INSTANCE, merged, [document["_id"] for document in merged])
        count = await self._apply_updates(merged)
        return await self._reload(ids), count


class GenreService(EntityService):
    entity = GENRE

    async def list(self, options: GenreListOptions) -> List[Dict]:
        return await self.db.find(GENRE, compose_genre_query(options))

    async def detail(self, genre_id: str, options: GenreDetailOptions) -> Tuple[Dict, Optional[List[Dict]]]:
        """Get one genre, optionally with the books that carry it."""
        genre = await self.get_document(genre_id, build_projection(GENRE.fields, options.only, options.omit))
        books = None
        if options.show_book_list:
            books = await self.db.find_many(
                BOOK, {"genre": to_object_id(genre_id)}, {"genre": 0}, [BOOK.default_sort]
            )
        return genre, books

    async def create(self, name: str) -> Dict:
        document = {"name": name}
        await self.guard.check(GENRE, document)
        return await self._insert(document)

    async def create_many(self, names: Sequence[str]) -> List[Dict]:
        documents = [{"name": name} for name in names]
        await self.guard.check_many(GENRE, documents)
        return await self._insert_many(documents)

    async def update(self, genre_id: str, update: GenreUpdate) -> Dict:
        stored = await self.get_document(genre_id)
        merged = {**stored, "name": update.name}
        await self.guard.check(GENRE, merged, exclude_id=stored["_id"])
        return await self._apply_update(stored["_id"], merged)

    async def update_many(self, updates: Sequence[Tuple[str, GenreUpdate]]) -> Tuple[List[Dict], int]:
        ids = [genre_id for genre_id, _ in updates]
        await self.require_ids(ids)
        merged = [{**await self.get_document(i), "name": u.name} for i, u in updates]
        await self.guard.check_many(GENRE, merged, [document["_id"] for document in merged])
        count = await self._apply_updates(merged)
        return await self._reload(ids), count
