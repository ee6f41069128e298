"""
Library catalog core.

This package holds the query-option normalization and reference resolution
layer shared by the REST API:
- Field projection and date-range normalization
- List query composition per entity type
- Reference resolution for authors, genres and books
- Duplicate guarding before writes
"""
