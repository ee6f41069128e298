"""
MongoDB access for the catalog.
Handles connection, indexing and the document operations used by the core.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import UpdateOne
from pymongo.errors import ConnectionFailure

from catalog.entities import ENTITY_TYPES, EntityType
from catalog.query import ListQuery

logger = structlog.get_logger(__name__)


def to_object_id(value: Any) -> ObjectId:
    """Convert a 24-character hex string (or ObjectId) into an ObjectId."""
    if isinstance(value, ObjectId):
        return value
    return ObjectId(str(value))


class CatalogDatabase:
    """
    Async MongoDB handle for the catalog collections.

    The handle is created once per process and passed explicitly to the
    resolver, the guard and the services.
    """

    def __init__(self, connection_url: Optional[str] = None, database_name: Optional[str] = None):
        """
        Initialize the catalog database handle.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    def from_database(cls, database: AsyncIOMotorDatabase) -> "CatalogDatabase":
        """Wrap an already opened database (used by tests)."""
        catalog_db = cls(database_name=getattr(database, "name", None))
        catalog_db.database = database
        return catalog_db

    async def connect(self) -> None:
        """Establish connection to MongoDB."""
        try:
            self.client = AsyncIOMotorClient(self.connection_url)
            self.database = self.client[self.database_name]

            # Test connection
            await self.client.admin.command("ping")
            logger.info("Successfully connected to MongoDB", database=self.database_name)

            await self._create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """
        Create indexes for the list filters and the duplicate checks.
        None of them is unique: duplicate protection is a pre-write check.
        """
        try:
            await self.database.authors.create_index([("firstName", 1), ("lastName", 1)])
            await self.database.books.create_index("title")
            await self.database.books.create_index("author")
            await self.database.books.create_index("genre")
            await self.database.bookinstances.create_index("book")
            await self.database.bookinstances.create_index("status")
            await self.database.genres.create_index("name")

            logger.info("Successfully created MongoDB indexes")

        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    def collection_for(self, entity: EntityType) -> AsyncIOMotorCollection:
        return self.database[entity.collection]

    # -- reads -------------------------------------------------------------

    async def find(self, entity: EntityType, query: ListQuery) -> List[Dict]:
        """
        Run a list query.

        Sort is applied before skip, and skip before limit.

        Args:
            entity: Entity type to read
            query: Composed list query

        Returns:
            Matching documents
        """
        options: Dict[str, Any] = {"sort": query.sort, "skip": query.skip}
        if query.limit:
            options["limit"] = query.limit
        cursor = self.collection_for(entity).find(query.filter, query.projection or None, **options)
        return await cursor.to_list(length=None)

    async def find_many(
        self,
        entity: EntityType,
        filter_query: Mapping[str, Any],
        projection: Optional[Mapping[str, int]] = None,
        sort: Optional[Sequence[Tuple[str, int]]] = None,
    ) -> List[Dict]:
        """Find every document matching a raw filter."""
        options = {"sort": list(sort)} if sort else {}
        cursor = self.collection_for(entity).find(dict(filter_query), projection or None, **options)
        return await cursor.to_list(length=None)

    async def find_one(
        self,
        entity: EntityType,
        filter_query: Mapping[str, Any],
        projection: Optional[Mapping[str, int]] = None,
    ) -> Optional[Dict]:
        return await self.collection_for(entity).find_one(dict(filter_query), projection or None)

    async def find_by_id(
        self,
        entity: EntityType,
        entity_id: Any,
        projection: Optional[Mapping[str, int]] = None,
    ) -> Optional[Dict]:
        return await self.find_one(entity, {"_id": to_object_id(entity_id)}, projection)

    async def exists(self, entity: EntityType, filter_query: Mapping[str, Any]) -> bool:
        """Check whether any document matches the filter."""
        return await self.find_one(entity, filter_query, {"_id": 1}) is not None

    async def missing_ids(self, entity: EntityType, ids: Iterable[Any]) -> List[str]:
        """
        Return the ids (as given) that have no stored document.

        Args:
            entity: Entity type to check
            ids: Ids to look for

        Returns:
            Ids not found, in the order they were given
        """
        ids = list(ids)
        found = await self.find_many(
            entity, {"_id": {"$in": [to_object_id(i) for i in ids]}}, {"_id": 1}
        )
        found_ids = {doc["_id"] for doc in found}
        return [str(i) for i in ids if to_object_id(i) not in found_ids]

    # -- writes ------------------------------------------------------------

    async def insert_one(self, entity: EntityType, document: Dict) -> Dict:
        result = await self.collection_for(entity).insert_one(document)
        document["_id"] = result.inserted_id
        logger.debug("Inserted document", collection=entity.collection, id=str(result.inserted_id))
        return document

    async def insert_many(self, entity: EntityType, documents: List[Dict]) -> List[Dict]:
        if not documents:
            return []
        result = await self.collection_for(entity).insert_many(documents)
        for document, inserted_id in zip(documents, result.inserted_ids):
            document["_id"] = inserted_id
        logger.debug("Inserted documents", collection=entity.collection, count=len(documents))
        return documents

    async def update_one(self, entity: EntityType, entity_id: Any, changes: Mapping[str, Any]) -> int:
        result = await self.collection_for(entity).update_one(
            {"_id": to_object_id(entity_id)}, {"$set": dict(changes)}
        )
        return result.modified_count

    async def bulk_update(self, entity: EntityType, updates: Sequence[Tuple[Any, Mapping[str, Any]]]) -> int:
        """
        Apply several updates keyed by id in one bulk write.

        Args:
            entity: Entity type to update
            updates: (id, changes) pairs

        Returns:
            Number of modified documents
        """
        if not updates:
            return 0
        operations = [
            UpdateOne({"_id": to_object_id(entity_id)}, {"$set": dict(changes)})
            for entity_id, changes in updates
        ]
        result = await self.collection_for(entity).bulk_write(operations)
        return result.modified_count

    async def delete_one(self, entity: EntityType, entity_id: Any) -> int:
        result = await self.collection_for(entity).delete_one({"_id": to_object_id(entity_id)})
        return result.deleted_count

    async def delete_many(self, entity: EntityType, ids: Iterable[Any]) -> int:
        result = await self.collection_for(entity).delete_many(
            {"_id": {"$in": [to_object_id(i) for i in ids]}}
        )
        return result.deleted_count

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")

            counts = {}
            for entity in ENTITY_TYPES:
                counts[f"{entity.collection}_count"] = await self.collection_for(entity).count_documents({})

            return {"status": "healthy", **counts}
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
