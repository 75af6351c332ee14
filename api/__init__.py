"""
HTTP API for the marketplace engine.

This package provides a single FastAPI application that exposes:
- Catalog search, feed and service submission endpoints
- Checkout and order lifecycle endpoints
- Seller dashboard statistics
"""

from api.main import app

__all__ = ["app"]
