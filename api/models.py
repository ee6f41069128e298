"""
Pydantic models for the API request bodies and responses.
Entity payloads and list options live in catalog.models; this module wraps
them into the batch bodies the routers accept.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, model_validator

from catalog.models import (
    AuthorReference, AuthorUpdate, BookData, BookInstanceData,
    BookInstanceUpdate, BookUpdate, CatalogModel, GenreUpdate, Name,
    ObjectIdStr,
)


def _check_has_changes(item: BaseModel) -> None:
    if not item.model_fields_set - {"id"}:
        raise ValueError("must have at least 1 key besides \"id\"")


class AuthorUpdateItem(AuthorUpdate):
    """One element of a batch author update."""
    id: ObjectIdStr

    @model_validator(mode="after")
    def check_has_changes(self):
        _check_has_changes(self)
        return self

    def changes(self) -> AuthorUpdate:
        return AuthorUpdate.model_validate(self.model_dump(exclude={"id"}, exclude_unset=True))


class BookUpdateItem(BookUpdate):
    """One element of a batch book update."""
    id: ObjectIdStr

    @model_validator(mode="after")
    def check_has_changes(self):
        _check_has_changes(self)
        return self

    def changes(self) -> BookUpdate:
        return BookUpdate.model_validate(self.model_dump(exclude={"id"}, exclude_unset=True))


class BookInstanceUpdateItem(BookInstanceUpdate):
    """One element of a batch book instance update."""
    id: ObjectIdStr

    @model_validator(mode="after")
    def check_has_changes(self):
        _check_has_changes(self)
        return self

    def changes(self) -> BookInstanceUpdate:
        return BookInstanceUpdate.model_validate(self.model_dump(exclude={"id"}, exclude_unset=True))


class GenreUpdateItem(GenreUpdate):
    """One element of a batch genre update."""
    id: ObjectIdStr

    def changes(self) -> GenreUpdate:
        return GenreUpdate(name=self.name)


class AuthorBatch(CatalogModel):
    authors: List[AuthorReference] = Field(..., min_length=1)


class AuthorUpdateBatch(CatalogModel):
    authors: List[AuthorUpdateItem] = Field(..., min_length=1)


class BookBatch(CatalogModel):
    books: List[BookData] = Field(..., min_length=1)


class BookUpdateBatch(CatalogModel):
    books: List[BookUpdateItem] = Field(..., min_length=1)


class BookInstanceBatch(CatalogModel):
    book_instances: List[BookInstanceData] = Field(..., min_length=1)


class BookInstanceUpdateBatch(CatalogModel):
    book_instances: List[BookInstanceUpdateItem] = Field(..., min_length=1)


class GenreNames(CatalogModel):
    names: List[Name] = Field(..., min_length=1)


class GenreUpdateBatch(CatalogModel):
    genres: List[GenreUpdateItem] = Field(..., min_length=1)


class IdList(CatalogModel):
    """Ids of the entities a batch delete removes."""
    ids: List[ObjectIdStr] = Field(..., min_length=1)


class ErrorResponse(BaseModel):
    """Error response model."""
    code: int = Field(..., description="HTTP status code")
    message: str = Field(..., description="Error message")
    errors: Optional[Any] = Field(None, description="Additional error details")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
