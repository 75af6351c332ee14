"""
Catalog service.

Owns every write to the catalog (creator submissions, package edits, interest
counters) and wraps the pure listing query engine with the browsing analytics
events the marketplace tracks (views, interest, searches, applied filters).

The service publishes events; it doesn't know who consumes them.
"""

import logging
import threading
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from catalog.query import ListingQuery, query
from catalog.ranking import rank
from shared.data_store import DataStore, get_data_store
from shared.errors import ValidationError
from shared.event_bus import EventBus, get_event_bus
from shared.events import (
    filters_applied,
    search_performed,
    service_interest_registered,
    service_packages_updated,
    service_published,
    service_viewed,
)
from shared.models import Creator, Service, ServiceCategory, ServicePackage

logger = logging.getLogger("catalog_service")

MAX_PACKAGES = 3


class PackageDraft(BaseModel):
    """A package as submitted by a creator, before it becomes part of a service."""
    id: Optional[str] = Field(default=None, description="Keep an existing package ID")
    name: str = Field(..., description="Package name, e.g. Basic")
    description: str = Field(default="")
    price: int = Field(..., description="Price in minor units")
    delivery_days: int = Field(..., description="Days to deliver")
    revisions: int = Field(default=1)
    features: list[str] = Field(default_factory=list)


def _build_packages(service_id: str, drafts: list[PackageDraft]) -> list[ServicePackage]:
    """Turn drafts into validated packages; blank features are dropped first."""
    if not 1 <= len(drafts) <= MAX_PACKAGES:
        raise ValidationError(
            f"A service needs between 1 and {MAX_PACKAGES} packages, got {len(drafts)}",
            field="packages",
        )

    packages = []
    for index, draft in enumerate(drafts, start=1):
        features = [f.strip() for f in draft.features if f.strip()]
        if not features:
            raise ValidationError(
                f"Package '{draft.name}' needs at least one feature",
                field="packages",
            )
        try:
            packages.append(ServicePackage(
                id=draft.id or f"{service_id}-pkg{index}",
                name=draft.name,
                description=draft.description,
                price=draft.price,
                delivery_days=draft.delivery_days,
                revisions=draft.revisions,
                features=features,
            ))
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid package '{draft.name}': {e}", field="packages") from e

    ids = [p.id for p in packages]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise ValidationError(f"Duplicate package IDs: {', '.join(duplicates)}", field="packages")
    return packages


class CatalogService:
    """
    Catalog writes and browsing.

    Example:
        catalog = CatalogService()
        results = catalog.search(ListingQuery(search="reels", sort="price_low"))
    """

    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        data_store: Optional[DataStore] = None,
    ):
        """
        Initialize the catalog service.

        Args:
            event_bus: Event bus for publishing events
            data_store: Data store holding the catalog
        """
        self.event_bus = event_bus or get_event_bus()
        self.data_store = data_store or get_data_store()
        self._write_lock = threading.Lock()

    # =========================================================================
    # Browsing
    # =========================================================================

    def search(self, params: ListingQuery, user_id: Optional[str] = None) -> list[Service]:
        """
        Run a listing query against a snapshot of the catalog.

        Publishes SearchPerformed when there was a search text and
        FiltersApplied when narrowing filters were active.

        Raises:
            ValidationError: If the query is malformed (nothing is published)
        """
        results = query(self.data_store.snapshot_services(), params)

        if params.search:
            self.event_bus.publish(search_performed(params.search, len(results), user_id=user_id))

        active = params.active_filters()
        if any(name != "search" for name in active):
            self.event_bus.publish(filters_applied(
                filters=params.model_dump(exclude_none=True, exclude={"search"}),
                active=active,
                user_id=user_id,
            ))

        return results

    def feed(self, limit: Optional[int] = None) -> list[Service]:
        """
        The home feed: the whole catalog by relevance score.

        Raises:
            ValidationError: limit is given and below 1
        """
        if limit is not None and limit < 1:
            raise ValidationError(f"limit must be at least 1, got {limit}", field="limit")
        ranked = rank(self.data_store.snapshot_services())
        return ranked[:limit] if limit is not None else ranked

    def get_service(self, service_id: str) -> Service:
        """Get a service or raise NotFoundError."""
        return self.data_store.require_service(service_id)

    def record_view(self, service_id: str, user_id: Optional[str] = None) -> Service:
        """Track that a service detail page was opened."""
        service = self.data_store.require_service(service_id)
        self.event_bus.publish(service_viewed(service_id, user_id=user_id))
        return service

    def register_interest(self, service_id: str, user_id: Optional[str] = None) -> Service:
        """Count a buyer's interest in a service and publish the new count."""
        with self._write_lock:
            service = self.data_store.require_service(service_id)
            updated = service.model_copy(update={"interested_count": service.interested_count + 1})
            self.data_store.replace_service(updated)

        self.event_bus.publish(service_interest_registered(
            service_id,
            interested_count=updated.interested_count,
            user_id=user_id,
        ))
        return updated

    # =========================================================================
    # Creator Submissions
    # =========================================================================

    def publish_service(
        self,
        creator: Creator,
        title: str,
        description: str,
        category: ServiceCategory,
        packages: list[PackageDraft],
        tags: Optional[list[str]] = None,
        portfolio: Optional[list[str]] = None,
    ) -> Service:
        """
        Publish a new service submitted by a creator.

        Raises:
            ValidationError: Missing title/description/category, no packages,
                             more than three, or an incomplete package
        """
        if not title.strip() or not description.strip() or not category:
            raise ValidationError("Title, description and category are required")

        service_id = f"svc-{uuid4().hex[:8]}"
        built = _build_packages(service_id, packages)

        try:
            service = Service(
                id=service_id,
                title=title.strip(),
                description=description.strip(),
                category=category,
                creator=creator,
                packages=built,
                portfolio=portfolio or [],
                tags=[t.strip() for t in (tags or []) if t.strip()],
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid service: {e}") from e

        self.data_store.add_service(service)
        logger.info(f"Service {service.id} published by {creator.id}: {service.title}")

        self.event_bus.publish(service_published(
            service_id=service.id,
            creator_id=creator.id,
            title=service.title,
            category=service.category,
            package_count=len(service.packages),
            min_price=service.min_price,
        ))
        return service

    def update_packages(
        self,
        service_id: str,
        creator_id: str,
        packages: list[PackageDraft],
    ) -> Service:
        """
        Replace a service's packages. Only the owning creator may do this.

        Derived prices and delivery days follow the new packages; existing
        orders keep the package they were placed on.

        Raises:
            NotFoundError: Unknown service
            ValidationError: Not the owner, or invalid packages
        """
        with self._write_lock:
            service = self.data_store.require_service(service_id)
            if service.creator.id != creator_id:
                raise ValidationError(
                    f"Creator {creator_id} does not own service {service_id}",
                    field="creator_id",
                )
            updated = service.with_packages(_build_packages(service_id, packages))
            self.data_store.replace_service(updated)

        logger.info(
            f"Packages updated for {service_id}: min price "
            f"{service.min_price} -> {updated.min_price}"
        )
        self.event_bus.publish(service_packages_updated(
            service_id=service_id,
            previous_min_price=service.min_price,
            new_min_price=updated.min_price,
            min_delivery_days=updated.min_delivery_days,
        ))
        return updated
