"""
Entity routers of the catalog API.
"""

from api.routers import authors, book_instances, books, genres

ROUTERS = (authors.router, books.router, book_instances.router, genres.router)
