"""
Book instance endpoints.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Request, status

from api.dependencies import catalog_response, get_book_instance_service
from api.models import BookInstanceBatch, BookInstanceUpdateBatch, IdList
from api.rate_limit import enforce_rate_limit
from catalog.models import (
    BookInstanceData, BookInstanceDetailOptions, BookInstanceListOptions, BookInstanceUpdate,
)
from catalog.services import BookInstanceService

router = APIRouter(prefix="/bookinstances", tags=["Book instances"], dependencies=[Depends(enforce_rate_limit)])

BookInstanceId = Annotated[str, Path(pattern=r"^[a-fA-F0-9]{24}$", description="Book instance id")]


@router.get("")
async def list_book_instances(
    request: Request,
    options: Optional[BookInstanceListOptions] = None,
    service: BookInstanceService = Depends(get_book_instance_service),
):
    """
    List book instances.

    ``back`` is a date comparison object where ``e`` means the exact date.
    ``showBook`` populates the book; ``showAuthor``/``showGenre`` then
    populate the book's author and genres.
    """
    instances = await service.list(options or BookInstanceListOptions())
    return catalog_response(request, {"bookInstances": instances})


@router.post("/multiple", status_code=status.HTTP_201_CREATED)
async def create_book_instances(
    request: Request,
    batch: BookInstanceBatch,
    service: BookInstanceService = Depends(get_book_instance_service),
):
    instances = await service.create_many(batch.book_instances)
    return catalog_response(request, {"bookInstances": instances}, status.HTTP_201_CREATED)


@router.patch("/multiple")
async def update_book_instances(
    request: Request,
    batch: BookInstanceUpdateBatch,
    service: BookInstanceService = Depends(get_book_instance_service),
):
    instances, update_count = await service.update_many(
        [(item.id, item.changes()) for item in batch.book_instances]
    )
    return catalog_response(request, {"bookInstances": instances, "updateCount": update_count})


@router.delete("/multiple")
async def delete_book_instances(
    request: Request,
    body: IdList,
    service: BookInstanceService = Depends(get_book_instance_service),
):
    deleted_count = await service.delete_many(body.ids)
    return catalog_response(request, {"message": "Deleted book instances", "deletedCount": deleted_count})


@router.get("/{instance_id}")
async def get_book_instance(
    request: Request,
    instance_id: BookInstanceId,
    options: Optional[BookInstanceDetailOptions] = None,
    service: BookInstanceService = Depends(get_book_instance_service),
):
    instance = await service.detail(instance_id, options or BookInstanceDetailOptions())
    return catalog_response(request, {"bookInstance": instance})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_book_instance(
    request: Request,
    payload: BookInstanceData,
    service: BookInstanceService = Depends(get_book_instance_service),
):
    """Create a copy of an existing book, given by ``bookId`` or a ``book`` descriptor."""
    instance = await service.create(payload)
    return catalog_response(request, {"bookInstance": instance}, status.HTTP_201_CREATED)


@router.patch("/{instance_id}")
async def update_book_instance(
    request: Request,
    instance_id: BookInstanceId,
    payload: BookInstanceUpdate,
    service: BookInstanceService = Depends(get_book_instance_service),
):
    instance = await service.update(instance_id, payload)
    return catalog_response(request, {"bookInstance": instance})


@router.delete("/{instance_id}")
async def delete_book_instance(
    request: Request,
    instance_id: BookInstanceId,
    service: BookInstanceService = Depends(get_book_instance_service),
):
    instance = await service.delete(instance_id)
    return catalog_response(request, {"message": "Deleted book instance", "bookInstance": instance})
