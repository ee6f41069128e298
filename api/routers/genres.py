"""
Genre endpoints.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Request, status

from api.dependencies import catalog_response, get_genre_service
from api.models import GenreNames, GenreUpdateBatch, IdList
from api.rate_limit import enforce_rate_limit
from catalog.models import GenreDetailOptions, GenreListOptions, GenreReference, GenreUpdate
from catalog.services import GenreService

router = APIRouter(prefix="/genres", tags=["Genres"], dependencies=[Depends(enforce_rate_limit)])

GenreId = Annotated[str, Path(pattern=r"^[a-fA-F0-9]{24}$", description="Genre id")]


@router.get("")
async def list_genres(
    request: Request,
    options: Optional[GenreListOptions] = None,
    service: GenreService = Depends(get_genre_service),
):
    genres = await service.list(options or GenreListOptions())
    return catalog_response(request, {"genres": genres})


@router.post("/multiple", status_code=status.HTTP_201_CREATED)
async def create_genres(
    request: Request,
    body: GenreNames,
    service: GenreService = Depends(get_genre_service),
):
    genres = await service.create_many(body.names)
    return catalog_response(request, {"genres": genres}, status.HTTP_201_CREATED)


@router.patch("/multiple")
async def update_genres(
    request: Request,
    batch: GenreUpdateBatch,
    service: GenreService = Depends(get_genre_service),
):
    genres, update_count = await service.update_many([(item.id, item.changes()) for item in batch.genres])
    return catalog_response(request, {"genres": genres, "updateCount": update_count})


@router.delete("/multiple")
async def delete_genres(
    request: Request,
    body: IdList,
    service: GenreService = Depends(get_genre_service),
):
    deleted_count = await service.delete_many(body.ids)
    return catalog_response(request, {"message": "Deleted genres", "deletedCount": deleted_count})


@router.get("/{genre_id}")
async def get_genre(
    request: Request,
    genre_id: GenreId,
    options: Optional[GenreDetailOptions] = None,
    service: GenreService = Depends(get_genre_service),
):
    """Get one genre; ``showBookList`` adds the books carrying it."""
    genre, books = await service.detail(genre_id, options or GenreDetailOptions())
    content = {"genre": genre}
    if books is not None:
        content["listOfBooks"] = books
    return catalog_response(request, content)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_genre(
    request: Request,
    payload: GenreReference,
    service: GenreService = Depends(get_genre_service),
):
    genre = await service.create(payload.name)
    return catalog_response(request, {"genre": genre}, status.HTTP_201_CREATED)


@router.patch("/{genre_id}")
async def update_genre(
    request: Request,
    genre_id: GenreId,
    payload: GenreUpdate,
    service: GenreService = Depends(get_genre_service),
):
    genre = await service.update(genre_id, payload)
    return catalog_response(request, {"genre": genre})


@router.delete("/{genre_id}")
async def delete_genre(
    request: Request,
    genre_id: GenreId,
    service: GenreService = Depends(get_genre_service),
):
    genre = await service.delete(genre_id)
    return catalog_response(request, {"message": "Deleted genre", "genre": genre})
