"""
Pydantic models for catalog entities, reference descriptors and list options.
Field names are snake_case in Python and camelCase on the wire and in the store.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Annotated, ClassVar, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic.functional_validators import AfterValidator

from catalog.dates import to_naive_utc, utcnow
from catalog.entities import AUTHOR, BOOK, BOOK_INSTANCE, GENRE

ISBN_RE = re.compile(
    r"^(?:ISBN(?:-1[03])?:? )?(?=[0-9X]{10}$|(?=(?:[0-9]+[- ]){3})[- 0-9X]{13}$|97[89][0-9]{10}$"
    r"|(?=(?:[0-9]+[- ]){4})[- 0-9]{17}$)(?:97[89][- ]?)?[0-9]{1,5}[- ]?[0-9]+[- ]?[0-9]+[- ]?[0-9X]$"
)

ObjectIdStr = Annotated[str, Field(pattern=r"^[a-fA-F0-9]{24}$")]
UTCDateTime = Annotated[datetime, AfterValidator(to_naive_utc)]
Name = Annotated[str, Field(min_length=3, max_length=100)]
Title = Annotated[str, Field(min_length=1, max_length=100)]
Summary = Annotated[str, Field(min_length=1, max_length=500)]
SortDirection = Union[Literal[1, -1], Literal["ascending", "asc", "descending", "desc"]]


class BookStatus(str, Enum):
    """Availability status of a physical book copy."""
    AVAILABLE = "Available"
    MAINTENANCE = "Maintenance"
    LOANED = "Loaned"
    RESERVED = "Reserved"


class CatalogModel(BaseModel):
    """Base model: camelCase aliases, unknown keys rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        use_enum_values=True,
    )

    def to_document(self) -> Dict:
        """Dump set fields under their store (camelCase) names."""
        return self.model_dump(by_alias=True, exclude_none=True)


def _exclusive(model: BaseModel, first: str, second: str, required: bool = False) -> None:
    """Validate that at most one (or, if required, exactly one) of two fields is set."""
    has_first = getattr(model, first) is not None
    has_second = getattr(model, second) is not None
    if has_first and has_second:
        raise ValueError(f'"{to_camel(first)}" conflicts with "{to_camel(second)}"')
    if required and not (has_first or has_second):
        raise ValueError(f'must contain exactly one of ["{to_camel(first)}", "{to_camel(second)}"]')


def _check_isbn(value: Optional[str]) -> Optional[str]:
    if value is not None and not ISBN_RE.match(value):
        raise ValueError(f'"isbn" with value "{value}" fails to match the ISBN pattern')
    return value


def _check_not_future(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value > utcnow():
        raise ValueError("date must not be in the future")
    return value


def _check_not_past_day(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.date() < utcnow().date():
        raise ValueError("date must be today or later")
    return value


def _require_any(model: BaseModel) -> None:
    if not model.model_fields_set:
        raise ValueError("must have at least 1 key")


# ---------------------------------------------------------------------------
# Date ranges and reference descriptors
# ---------------------------------------------------------------------------

class DateRange(CatalogModel):
    """Client date comparison object: e, gt, gte, lt, lte."""
    e: Optional[UTCDateTime] = None
    gt: Optional[UTCDateTime] = None
    gte: Optional[UTCDateTime] = None
    lt: Optional[UTCDateTime] = None
    lte: Optional[UTCDateTime] = None

    def as_dict(self) -> Dict[str, datetime]:
        return self.model_dump(exclude_none=True)


class AuthorReference(CatalogModel):
    """Author descriptor matched exactly (also the author creation payload)."""
    first_name: Name
    last_name: Name
    date_of_birth: UTCDateTime
    date_of_death: Optional[UTCDateTime] = None

    @field_validator("date_of_birth", "date_of_death")
    @classmethod
    def check_not_future(cls, value):
        return _check_not_future(value)

    @model_validator(mode="after")
    def check_death_after_birth(self):
        if self.date_of_death is not None and self.date_of_death <= self.date_of_birth:
            raise ValueError('"dateOfDeath" must be greater than "dateOfBirth"')
        return self


class AuthorLookup(CatalogModel):
    """Author descriptor resolved through the author list query (prefix names, date ranges)."""
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    date_of_birth: Optional[DateRange] = None
    date_of_death: Optional[DateRange] = None

    @model_validator(mode="after")
    def check_not_empty(self):
        _require_any(self)
        return self


class GenreReference(CatalogModel):
    """Genre descriptor (also the genre creation payload)."""
    name: Name


GenreIds = Union[ObjectIdStr, Annotated[List[ObjectIdStr], Field(min_length=1)]]
GenreDescriptors = Union[GenreReference, Annotated[List[GenreReference], Field(min_length=1)]]


class BookReference(CatalogModel):
    """Book descriptor used to find an existing book for a book instance."""
    title: Title
    author_id: Optional[ObjectIdStr] = None
    author: Optional[AuthorLookup] = None
    summary: Summary
    isbn: str
    genre_id: Optional[GenreIds] = None
    genre: Optional[GenreDescriptors] = None

    @field_validator("isbn")
    @classmethod
    def check_isbn(cls, value):
        return _check_isbn(value)

    @model_validator(mode="after")
    def check_references(self):
        _exclusive(self, "author_id", "author", required=True)
        _exclusive(self, "genre_id", "genre")
        return self


# ---------------------------------------------------------------------------
# Write payloads
# ---------------------------------------------------------------------------

class AuthorUpdate(CatalogModel):
    """Partial author update."""
    first_name: Optional[Name] = None
    last_name: Optional[Name] = None
    date_of_birth: Optional[UTCDateTime] = None
    date_of_death: Optional[UTCDateTime] = None

    @field_validator("date_of_birth", "date_of_death")
    @classmethod
    def check_not_future(cls, value):
        return _check_not_future(value)

    @model_validator(mode="after")
    def check_not_empty(self):
        _require_any(self)
        return self


class BookData(CatalogModel):
    """Book creation payload."""
    title: Title
    author_id: Optional[ObjectIdStr] = None
    author: Optional[AuthorReference] = None
    summary: Summary
    isbn: str
    genre_id: Optional[GenreIds] = None
    genre: Optional[GenreDescriptors] = None

    @field_validator("isbn")
    @classmethod
    def check_isbn(cls, value):
        return _check_isbn(value)

    @model_validator(mode="after")
    def check_references(self):
        _exclusive(self, "author_id", "author", required=True)
        _exclusive(self, "genre_id", "genre")
        return self


class BookUpdate(CatalogModel):
    """Partial book update."""
    title: Optional[Title] = None
    author_id: Optional[ObjectIdStr] = None
    author: Optional[AuthorReference] = None
    summary: Optional[Summary] = None
    isbn: Optional[str] = None
    genre_id: Optional[GenreIds] = None
    genre: Optional[GenreDescriptors] = None

    @field_validator("isbn")
    @classmethod
    def check_isbn(cls, value):
        return _check_isbn(value)

    @model_validator(mode="after")
    def check_references(self):
        _require_any(self)
        _exclusive(self, "author_id", "author")
        _exclusive(self, "genre_id", "genre")
        return self


class BookInstanceData(CatalogModel):
    """Book instance creation payload."""
    book_id: Optional[ObjectIdStr] = None
    book: Optional[BookReference] = None
    publisher: Name
    status: BookStatus = BookStatus.MAINTENANCE.value
    back: Optional[UTCDateTime] = None

    @field_validator("back")
    @classmethod
    def check_back(cls, value):
        return _check_not_past_day(value)

    @model_validator(mode="after")
    def check_references(self):
        _exclusive(self, "book_id", "book", required=True)
        return self


class BookInstanceUpdate(CatalogModel):
    """Partial book instance update."""
    book_id: Optional[ObjectIdStr] = None
    book: Optional[BookReference] = None
    publisher: Optional[Name] = None
    status: Optional[BookStatus] = None
    back: Optional[UTCDateTime] = None

    @field_validator("back")
    @classmethod
    def check_back(cls, value):
        return _check_not_past_day(value)

    @model_validator(mode="after")
    def check_references(self):
        _require_any(self)
        _exclusive(self, "book_id", "book")
        return self


class GenreUpdate(CatalogModel):
    """Genre update."""
    name: Name


# ---------------------------------------------------------------------------
# Read options
# ---------------------------------------------------------------------------

class ProjectionOptions(CatalogModel):
    """Field projection requested by the client."""
    entity_fields: ClassVar[Tuple[str, ...]] = ()

    only: Optional[List[str]] = Field(None, min_length=1)
    omit: Optional[List[str]] = Field(None, min_length=1)

    @model_validator(mode="after")
    def check_projection(self):
        _exclusive(self, "only", "omit")
        for name in (self.only or []) + (self.omit or []):
            if name not in self.entity_fields:
                raise ValueError(f'"{name}" must be one of [{", ".join(self.entity_fields)}]')
        return self


class ListOptions(ProjectionOptions):
    """Sorting and paging shared by every list request."""
    sort: Optional[Dict[str, SortDirection]] = Field(None, min_length=1)
    skip: int = Field(0, ge=0)
    limit: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_sort(self):
        for name in self.sort or {}:
            if name not in self.entity_fields:
                raise ValueError(f'sort key "{name}" is not allowed')
        return self


class AuthorListOptions(ListOptions):
    entity_fields: ClassVar[Tuple[str, ...]] = AUTHOR.fields

    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    date_of_birth: Optional[DateRange] = None
    date_of_death: Optional[DateRange] = None


class BookListOptions(ListOptions):
    entity_fields: ClassVar[Tuple[str, ...]] = BOOK.fields

    title: Optional[str] = Field(None, max_length=100)
    author_id: Optional[ObjectIdStr] = None
    author: Optional[AuthorLookup] = None
    summary: Optional[str] = Field(None, max_length=500)
    isbn: Optional[str] = None
    genre_id: Optional[GenreIds] = None
    genre: Optional[GenreDescriptors] = None
    show_author: bool = False
    show_genre: bool = False

    @model_validator(mode="after")
    def check_references(self):
        _exclusive(self, "author_id", "author")
        _exclusive(self, "genre_id", "genre")
        return self


class BookInstanceListOptions(ListOptions):
    entity_fields: ClassVar[Tuple[str, ...]] = BOOK_INSTANCE.fields

    book_id: Optional[ObjectIdStr] = None
    book: Optional[BookReference] = None
    publisher: Optional[str] = Field(None, max_length=100)
    status: Optional[BookStatus] = None
    back: Optional[DateRange] = None
    show_book: bool = False
    show_author: bool = False
    show_genre: bool = False

    @model_validator(mode="after")
    def check_references(self):
        _exclusive(self, "book_id", "book")
        return self


class GenreListOptions(ListOptions):
    entity_fields: ClassVar[Tuple[str, ...]] = GENRE.fields

    name: Optional[str] = Field(None, max_length=100)


class AuthorDetailOptions(ProjectionOptions):
    entity_fields: ClassVar[Tuple[str, ...]] = AUTHOR.fields

    show_book_list: bool = False


class BookDetailOptions(ProjectionOptions):
    entity_fields: ClassVar[Tuple[str, ...]] = BOOK.fields

    show_author: bool = False
    show_genre: bool = False


class BookInstanceDetailOptions(ProjectionOptions):
    entity_fields: ClassVar[Tuple[str, ...]] = BOOK_INSTANCE.fields

    show_book: bool = False
    show_author: bool = False
    show_genre: bool = False


class GenreDetailOptions(ProjectionOptions):
    entity_fields: ClassVar[Tuple[str, ...]] = GENRE.fields

    show_book_list: bool = False
