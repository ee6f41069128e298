"""
List query composer.

Combines prefix filters, relation filters, date ranges, projection, sort
and paging into one ListQuery per entity type.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING

from catalog.entities import AUTHOR, BOOK, BOOK_INSTANCE, GENRE, EntityType
from catalog.fields import build_projection
from catalog.models import (
    AuthorListOptions, BookInstanceListOptions, BookListOptions,
    GenreListOptions, ListOptions,
)
from catalog.ranges import author_date_filter, back_filter

SORT_DIRECTIONS = {
    1: ASCENDING,
    "asc": ASCENDING,
    "ascending": ASCENDING,
    -1: DESCENDING,
    "desc": DESCENDING,
    "descending": DESCENDING,
}

IdOrIds = Union[ObjectId, Sequence[ObjectId]]


@dataclass
class ListQuery:
    """Everything the store needs to run one list read."""
    filter: Dict[str, Any] = field(default_factory=dict)
    projection: Dict[str, int] = field(default_factory=dict)
    sort: List[Tuple[str, int]] = field(default_factory=list)
    skip: int = 0
    limit: Optional[int] = None


def prefix_match(value: str) -> Dict[str, str]:
    """Anchored "starts with" match on the literal text."""
    return {"$regex": f"^{re.escape(value)}"}


def normalize_sort(
    sort: Optional[Mapping[str, Union[int, str]]],
    default: Tuple[str, int],
) -> List[Tuple[str, int]]:
    """
    Convert a client sort mapping into a list of (field, direction) pairs.

    Args:
        sort: Mapping of field name to 1/-1 or asc/ascending/desc/descending
        default: Sort used when the client gave none

    Returns:
        Sort specification accepted by the store
    """
    if not sort:
        return [default]
    try:
        return [(name, SORT_DIRECTIONS[direction]) for name, direction in sort.items()]
    except KeyError as e:
        raise ValueError(f"Invalid sort direction: {e.args[0]!r}") from e


def _base_query(entity: EntityType, options: ListOptions) -> ListQuery:
    query = ListQuery(
        projection=build_projection(entity.fields, options.only, options.omit),
        sort=normalize_sort(options.sort, entity.default_sort),
        skip=options.skip,
        limit=options.limit or None,
    )
    values = options.to_document()
    for name in entity.prefix_fields:
        value = values.get(name)
        if value:
            query.filter[name] = prefix_match(value)
    return query


def _relation_filter(ids: IdOrIds) -> Any:
    if isinstance(ids, ObjectId):
        return ids
    return {"$all": list(ids)}


def compose_author_query(options: AuthorListOptions, now: Optional[datetime] = None) -> ListQuery:
    """Author list: name prefixes, birth range, death range or no death."""
    query = _base_query(AUTHOR, options)
    query.filter.update(author_date_filter(options.date_of_birth, options.date_of_death, now))
    return query


def compose_book_query(
    options: BookListOptions,
    author: Optional[ObjectId] = None,
    genre: Optional[IdOrIds] = None,
) -> ListQuery:
    """
    Book list query.

    Args:
        options: Client list options
        author: Resolved author id to filter on
        genre: Resolved genre id (book must contain it) or ids (book must contain all)
    """
    query = _base_query(BOOK, options)
    if author is not None:
        query.filter["author"] = author
    if genre is not None:
        query.filter["genre"] = _relation_filter(genre)
    return query


def compose_book_instance_query(
    options: BookInstanceListOptions,
    book: Optional[ObjectId] = None,
) -> ListQuery:
    """Book instance list: publisher/status prefixes, return date, book."""
    query = _base_query(BOOK_INSTANCE, options)
    query.filter.update(back_filter(options.back))
    if book is not None:
        query.filter["book"] = book
    return query


def compose_genre_query(
    options: GenreListOptions,
    or_clauses: Optional[List[Dict[str, Any]]] = None,
) -> ListQuery:
    """Genre list: name prefix plus an optional internal OR of match conditions."""
    query = _base_query(GENRE, options)
    if or_clauses:
        query.filter["$or"] = or_clauses
    return query
