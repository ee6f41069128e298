"""
Author endpoints.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Request, status

from api.dependencies import catalog_response, get_author_service
from api.models import AuthorBatch, AuthorUpdateBatch, IdList
from api.rate_limit import enforce_rate_limit
from catalog.models import AuthorDetailOptions, AuthorListOptions, AuthorReference, AuthorUpdate
from catalog.services import AuthorService

router = APIRouter(prefix="/authors", tags=["Authors"], dependencies=[Depends(enforce_rate_limit)])

AuthorId = Annotated[str, Path(pattern=r"^[a-fA-F0-9]{24}$", description="Author id")]


@router.get("")
async def list_authors(
    request: Request,
    options: Optional[AuthorListOptions] = None,
    service: AuthorService = Depends(get_author_service),
):
    """
    List authors.

    The JSON body may filter on name prefixes and on birth/death date ranges,
    and may set sort, skip, limit and only/omit.
    """
    authors = await service.list(options or AuthorListOptions())
    return catalog_response(request, {"authors": authors})


@router.post("/multiple", status_code=status.HTTP_201_CREATED)
async def create_authors(
    request: Request,
    batch: AuthorBatch,
    service: AuthorService = Depends(get_author_service),
):
    authors = await service.create_many(batch.authors)
    return catalog_response(request, {"authors": authors}, status.HTTP_201_CREATED)


@router.patch("/multiple")
async def update_authors(
    request: Request,
    batch: AuthorUpdateBatch,
    service: AuthorService = Depends(get_author_service),
):
    authors, update_count = await service.update_many([(item.id, item.changes()) for item in batch.authors])
    return catalog_response(request, {"authors": authors, "updateCount": update_count})


@router.delete("/multiple")
async def delete_authors(
    request: Request,
    body: IdList,
    service: AuthorService = Depends(get_author_service),
):
    deleted_count = await service.delete_many(body.ids)
    return catalog_response(request, {"message": "Deleted authors", "deletedCount": deleted_count})


@router.get("/{author_id}")
async def get_author(
    request: Request,
    author_id: AuthorId,
    options: Optional[AuthorDetailOptions] = None,
    service: AuthorService = Depends(get_author_service),
):
    """Get one author; ``showBookList`` adds the books written by them."""
    author, books = await service.detail(author_id, options or AuthorDetailOptions())
    content = {"author": author}
    if books is not None:
        content["listOfBooks"] = books
    return catalog_response(request, content)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_author(
    request: Request,
    payload: AuthorReference,
    service: AuthorService = Depends(get_author_service),
):
    author = await service.create(payload)
    return catalog_response(request, {"author": author}, status.HTTP_201_CREATED)


@router.patch("/{author_id}")
async def update_author(
    request: Request,
    author_id: AuthorId,
    payload: AuthorUpdate,
    service: AuthorService = Depends(get_author_service),
):
    author = await service.update(author_id, payload)
    return catalog_response(request, {"author": author})


@router.delete("/{author_id}")
async def delete_author(
    request: Request,
    author_id: AuthorId,
    service: AuthorService = Depends(get_author_service),
):
    author = await service.delete(author_id)
    return catalog_response(request, {"message": "Deleted author", "author": author})
