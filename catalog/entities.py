"""
Enumerated registry of catalog entity types.

Every component that needs to know which fields an entity has, which of
them define its identity, or how it is listed by default reads it from here.
"""

from dataclasses import dataclass
from typing import Tuple

from pymongo import ASCENDING


@dataclass(frozen=True)
class EntityType:
    """Static description of one catalog entity type."""

    name: str
    label: str
    plural_label: str
    collection: str
    fields: Tuple[str, ...]
    defining_fields: Tuple[str, ...]
    prefix_fields: Tuple[str, ...]
    default_sort: Tuple[str, int]
    exists_message: str

    def not_found_message(self, entity_id) -> str:
        return f"Cannot find {self.label} with id {entity_id}"

    def many_not_found_message(self, ids) -> str:
        return f"Cannot find {self.plural_label} with id(s) {','.join(str(i) for i in ids)}"


AUTHOR = EntityType(
    name="author",
    label="author",
    plural_label="author(s)",
    collection="authors",
    fields=("__v", "_id", "firstName", "lastName", "dateOfBirth", "dateOfDeath"),
    defining_fields=("firstName", "lastName", "dateOfBirth", "dateOfDeath"),
    prefix_fields=("firstName", "lastName"),
    default_sort=("firstName", ASCENDING),
    exists_message="Author(s) already exist(s)",
)

BOOK = EntityType(
    name="book",
    label="book",
    plural_label="book(s)",
    collection="books",
    fields=("__v", "_id", "title", "author", "summary", "isbn", "genre"),
    defining_fields=("title", "author", "summary", "isbn", "genre"),
    prefix_fields=("title", "summary", "isbn"),
    default_sort=("title", ASCENDING),
    exists_message="Book(s) already exist(s)",
)

BOOK_INSTANCE = EntityType(
    name="bookInstance",
    label="book instance",
    plural_label="book instance(s)",
    collection="bookinstances",
    fields=("__v", "_id", "book", "publisher", "status", "back"),
    defining_fields=("book", "publisher", "status", "back"),
    prefix_fields=("publisher", "status"),
    default_sort=("status", ASCENDING),
    exists_message="Book instance(s) already exist(s)",
)

GENRE = EntityType(
    name="genre",
    label="genre",
    plural_label="genre(s)",
    collection="genres",
    fields=("__v", "_id", "name"),
    defining_fields=("name",),
    prefix_fields=("name",),
    default_sort=("name", ASCENDING),
    exists_message="Genre already exists",
)

ENTITY_TYPES = (AUTHOR, BOOK, BOOK_INSTANCE, GENRE)
