"""bookfeed - Services Package

This package contains service modules for external integrations:
- Google Books API service (primary source)
- Open Library API service (ISBN fallback)
- Cover image URL enhancement
- HTTP client abstraction
"""
