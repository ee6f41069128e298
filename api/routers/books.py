"""
Book endpoints.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Request, status

from api.dependencies import catalog_response, get_book_service
from api.models import BookBatch, BookUpdateBatch, IdList
from api.rate_limit import enforce_rate_limit
from catalog.models import BookData, BookDetailOptions, BookListOptions, BookUpdate
from catalog.services import BookService

router = APIRouter(prefix="/books", tags=["Books"], dependencies=[Depends(enforce_rate_limit)])

BookId = Annotated[str, Path(pattern=r"^[a-fA-F0-9]{24}$", description="Book id")]


@router.get("")
async def list_books(
    request: Request,
    options: Optional[BookListOptions] = None,
    service: BookService = Depends(get_book_service),
):
    """
    List books.

    Besides the title/summary/isbn prefixes, books can be filtered by author
    (``authorId`` or an ``author`` descriptor) and by genre (``genreId`` or
    ``genre``, single or list). ``showAuthor``/``showGenre`` populate the
    related documents.
    """
    books = await service.list(options or BookListOptions())
    return catalog_response(request, {"books": books})


@router.post("/multiple", status_code=status.HTTP_201_CREATED)
async def create_books(
    request: Request,
    batch: BookBatch,
    service: BookService = Depends(get_book_service),
):
    books = await service.create_many(batch.books)
    return catalog_response(request, {"books": books}, status.HTTP_201_CREATED)


@router.patch("/multiple")
async def update_books(
    request: Request,
    batch: BookUpdateBatch,
    service: BookService = Depends(get_book_service),
):
    books, update_count = await service.update_many([(item.id, item.changes()) for item in batch.books])
    return catalog_response(request, {"books": books, "updateCount": update_count})


@router.delete("/multiple")
async def delete_books(
    request: Request,
    body: IdList,
    service: BookService = Depends(get_book_service),
):
    deleted_count = await service.delete_many(body.ids)
    return catalog_response(request, {"message": "Deleted books", "deletedCount": deleted_count})


@router.get("/{book_id}")
async def get_book(
    request: Request,
    book_id: BookId,
    options: Optional[BookDetailOptions] = None,
    service: BookService = Depends(get_book_service),
):
    book = await service.detail(book_id, options or BookDetailOptions())
    return catalog_response(request, {"book": book})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_book(
    request: Request,
    payload: BookData,
    service: BookService = Depends(get_book_service),
):
    """Create a book; the author and genres must already exist."""
    book = await service.create(payload)
    return catalog_response(request, {"book": book}, status.HTTP_201_CREATED)


@router.patch("/{book_id}")
async def update_book(
    request: Request,
    book_id: BookId,
    payload: BookUpdate,
    service: BookService = Depends(get_book_service),
):
    book = await service.update(book_id, payload)
    return catalog_response(request, {"book": book})


@router.delete("/{book_id}")
async def delete_book(
    request: Request,
    book_id: BookId,
    service: BookService = Depends(get_book_service),
):
    book = await service.delete(book_id)
    return catalog_response(request, {"message": "Deleted book", "book": book})
