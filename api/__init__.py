"""
FastAPI RESTful API for the Library Catalog.

This module provides a REST API for:
- Authors, books, book instances and genres (single and batch CRUD)
- Filtered, sorted and paginated listing with field projection
- Reference resolution between related entities
- Rate limiting
"""
