"""
Catalog side of the marketplace engine.

- ranking: the feed relevance score
- query: the pure listing query engine (filter + stable sort)
- listing_service: catalog writes and browsing with analytics events
"""

from catalog.ranking import score, rank
from catalog.query import ListingQuery, query
from catalog.listing_service import CatalogService, PackageDraft

__all__ = [
    "score",
    "rank",
    "ListingQuery",
    "query",
    "CatalogService",
    "PackageDraft",
]
