"""
FastAPI dependencies: the catalog database handle and the entity services.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from bson import ObjectId
from fastapi import Depends, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from api.config import config as api_config
from api.rate_limit import client_key, rate_limiter
from catalog.database import CatalogDatabase
from catalog.services import AuthorService, BookInstanceService, BookService, GenreService


def encode_datetime(value: datetime) -> str:
    """ISO-8601 UTC with milliseconds, e.g. 2022-10-15T00:00:00.000Z."""
    return value.isoformat(timespec="milliseconds") + "Z"


JSON_ENCODERS = {ObjectId: str, datetime: encode_datetime}


def catalog_response(
    request: Request,
    content: Dict[str, Any],
    status_code: int = status.HTTP_200_OK,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """
    Encode store documents and attach the rate limit headers.

    Args:
        request: Current request
        content: Response body, may contain ObjectIds and datetimes
        status_code: HTTP status code
        headers: Extra response headers

    Returns:
        JSONResponse ready to be returned by a route
    """
    headers = dict(headers or {})
    if api_config.rate_limit_enabled:
        headers.update(rate_limiter.get_rate_limit_headers(client_key(request)))

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(content, custom_encoder=JSON_ENCODERS),
        headers=headers,
    )


def get_database(request: Request) -> CatalogDatabase:
    """Catalog database handle opened by the application lifespan."""
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database service not available"
        )
    return database


def get_author_service(db: CatalogDatabase = Depends(get_database)) -> AuthorService:
    return AuthorService(db)


def get_book_service(db: CatalogDatabase = Depends(get_database)) -> BookService:
    return BookService(db)


def get_book_instance_service(db: CatalogDatabase = Depends(get_database)) -> BookInstanceService:
    return BookInstanceService(db)


def get_genre_service(db: CatalogDatabase = Depends(get_database)) -> GenreService:
    return GenreService(db)
