"""
Entity existence guard.

Before a create or update is written, the store is searched for an entity
with exactly the same defining fields. A match rejects the write.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

import structlog
from bson import ObjectId

from catalog.database import CatalogDatabase, to_object_id
from catalog.dates import is_before
from catalog.entities import AUTHOR, BOOK, EntityType
from catalog.errors import AlreadyExistsError, InvalidDatesError

logger = structlog.get_logger(__name__)


def check_author_dates(date_of_birth, date_of_death) -> None:
    """
    Require a death date, when set, to be strictly after the birth date.

    Raises:
        InvalidDatesError: The death date is not after the birth date
    """
    if date_of_death is None or date_of_birth is None:
        return
    if not is_before(date_of_birth, date_of_death):
        raise InvalidDatesError(
            f"Date of death {date_of_death.isoformat()} must be after "
            f"date of birth {date_of_birth.isoformat()}"
        )


def defining_filter(entity: EntityType, values: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Build the exact-match filter over an entity's defining fields.

    A missing field only matches documents where it is missing too. Book
    genres match as a set: all the same ids and nothing else.
    """
    query: Dict[str, Any] = {}
    for name in entity.defining_fields:
        value = values.get(name)
        if entity is BOOK and name == "genre":
            genres = list(value or [])
            query[name] = {"$all": genres, "$size": len(genres)} if genres else {"$size": 0}
        else:
            query[name] = value
    return query


def _identity_key(entity: EntityType, values: Mapping[str, Any]) -> tuple:
    key = []
    for name in entity.defining_fields:
        value = values.get(name)
        if entity is BOOK and name == "genre":
            value = frozenset(str(g) for g in value or [])
        elif isinstance(value, ObjectId):
            value = str(value)
        key.append(value)
    return tuple(key)


class ExistenceGuard:
    """Rejects writes that would duplicate an existing entity."""

    def __init__(self, db: CatalogDatabase):
        self.db = db

    async def exists(
        self,
        entity: EntityType,
        values: Mapping[str, Any],
        exclude_id: Optional[Any] = None,
    ) -> bool:
        query = defining_filter(entity, values)
        if exclude_id is not None:
            query["_id"] = {"$ne": to_object_id(exclude_id)}
        return await self.db.exists(entity, query)

    async def check(
        self,
        entity: EntityType,
        values: Mapping[str, Any],
        exclude_id: Optional[Any] = None,
    ) -> None:
        """
        Fail if an entity with the same defining fields already exists.

        Args:
            entity: Entity type being written
            values: Post-write document values (store field names)
            exclude_id: Id of the entity being updated

        Raises:
            InvalidDatesError: Author death date is not after birth date
            AlreadyExistsError: A matching entity already exists
        """
        if entity is AUTHOR:
            check_author_dates(values.get("dateOfBirth"), values.get("dateOfDeath"))

        if await self.exists(entity, values, exclude_id):
            logger.info("Duplicate entity rejected", entity=entity.name)
            raise AlreadyExistsError(entity.exists_message)

    async def check_many(
        self,
        entity: EntityType,
        documents: Iterable[Mapping[str, Any]],
        exclude_ids: Optional[List[Any]] = None,
    ) -> None:
        """
        Check a whole batch before anything in it is written.

        Two elements of the same batch with identical defining fields are
        duplicates too.
        """
        documents = list(documents)
        exclude_ids = exclude_ids or [None] * len(documents)

        if entity is AUTHOR:
            for values in documents:
                check_author_dates(values.get("dateOfBirth"), values.get("dateOfDeath"))

        seen = set()
        for values in documents:
            key = _identity_key(entity, values)
            if key in seen:
                logger.info("Duplicate entity inside batch", entity=entity.name)
                raise AlreadyExistsError(entity.exists_message)
            seen.add(key)

        for values, exclude_id in zip(documents, exclude_ids):
            await self.check(entity, values, exclude_id)
