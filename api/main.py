"""
FastAPI adapter for the marketplace engine.

A thin HTTP layer that translates requests into calls on the catalog and
ordering services and maps the engine's typed errors to status codes:

    ValidationError         -> 422
    NotFoundError           -> 404
    InvalidTransitionError  -> 409

Run with:
    uvicorn api.main:app --reload

Then visit http://localhost:8000/docs for interactive API documentation.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from catalog.listing_service import CatalogService, PackageDraft
from catalog.query import ListingQuery
from fulfillment.aggregator import aggregate
from fulfillment.notification_service import NotificationService
from fulfillment.ordering import OrderingService
from shared.channels import InboxChannel
from shared.config import get_settings
from shared.data_store import DataStore, get_data_store
from shared.errors import InvalidTransitionError, NotFoundError, ValidationError
from shared.event_bus import EventBus, get_event_bus
from shared.models import (
    ActorRole,
    BuyerRef,
    Creator,
    DashboardStats,
    Order,
    OrderAction,
    Service,
    ServiceCategory,
    SortOption,
)

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger("marketplace_api")


# =============================================================================
# Request / Response Models
# =============================================================================

class PublishServiceRequest(BaseModel):
    """A creator's service submission."""
    creator: Creator
    title: str
    description: str
    category: ServiceCategory
    packages: list[PackageDraft] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    portfolio: list[str] = Field(default_factory=list)


class UpdatePackagesRequest(BaseModel):
    """Replacement package list, sent by the owning creator."""
    creator_id: str
    packages: list[PackageDraft]


class CheckoutRequest(BaseModel):
    """A buyer checking out one package of a service."""
    service_id: str
    package_id: str
    buyer: BuyerRef
    description: str = ""
    duration: str = ""
    requirements: str = ""
    contact_phone: Optional[str] = None


class ActionRequest(BaseModel):
    """An action on an order, taken by the buyer or the seller."""
    action: OrderAction
    actor: ActorRole


class ActionResponse(BaseModel):
    """The order after the transition plus the transition record."""
    order: Order
    event: dict[str, str]


class OrderView(BaseModel):
    """An order with the actions each party can take next."""
    order: Order
    buyer_actions: list[OrderAction]
    seller_actions: list[OrderAction]


# =============================================================================
# Application State
# =============================================================================

# Module-level instances (would use proper DI in production)
_data_store: Optional[DataStore] = None
_event_bus: Optional[EventBus] = None
_channel: Optional[InboxChannel] = None
_ordering: Optional[OrderingService] = None
_notifications: Optional[NotificationService] = None


def get_store() -> DataStore:
    """Get the data store instance."""
    global _data_store
    if _data_store is None:
        _data_store = get_data_store()
    return _data_store


def get_bus() -> EventBus:
    """Get the event bus instance."""
    global _event_bus
    if _event_bus is None:
        _event_bus = get_event_bus()
    return _event_bus


def get_channel() -> InboxChannel:
    """Get the inbox channel instance."""
    global _channel
    if _channel is None:
        _channel = InboxChannel()
    return _channel


def get_catalog() -> CatalogService:
    """Catalog service over the shared store and bus."""
    return CatalogService(event_bus=get_bus(), data_store=get_store())


def get_ordering() -> OrderingService:
    """
    The shared ordering service.

    Kept as a single instance: its per-order locks must be shared by
    every request.
    """
    global _ordering
    if _ordering is None:
        _ordering = OrderingService(event_bus=get_bus(), data_store=get_store())
    return _ordering


def get_notification_service() -> NotificationService:
    """The notification service, started on first use."""
    global _notifications
    if _notifications is None:
        _notifications = NotificationService(
            event_bus=get_bus(),
            data_store=get_store(),
            channel=get_channel(),
            currency=get_settings().currency,
        )
        _notifications.start()
    return _notifications


def reset_app_state(
    data_store: Optional[DataStore] = None,
    event_bus: Optional[EventBus] = None,
    channel: Optional[InboxChannel] = None,
) -> None:
    """Reset application state (for testing)."""
    global _data_store, _event_bus, _channel, _ordering, _notifications
    if _notifications is not None:
        _notifications.stop()
    _data_store = data_store
    _event_bus = event_bus
    _channel = channel
    _ordering = None
    _notifications = None


# Application lifespan
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info("Starting Marketplace Engine API")
    get_notification_service()
    yield
    get_bus().wait_for_pending()
    get_notification_service().stop()
    logger.info("Shutting down")


app = FastAPI(
    title="Marketplace Engine",
    description="""
    Listing, ranking and order fulfillment for a creator-services marketplace.

    ## Endpoints

    - `/services` - Search and browse listings, publish services
    - `/feed` - Home feed by relevance
    - `/orders` - Checkout and order lifecycle actions
    - `/sellers/{id}/dashboard` - Seller statistics
    """,
    version="1.0.0",
    lifespan=lifespan,
)


# =============================================================================
# Error Mapping
# =============================================================================

@app.exception_handler(ValidationError)
async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc), "field": exc.field})


@app.exception_handler(NotFoundError)
async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidTransitionError)
async def handle_invalid_transition(request: Request, exc: InvalidTransitionError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "status": exc.status, "allowed": exc.allowed},
    )


# =============================================================================
# Health Check
# =============================================================================

@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "marketplace-engine"}


# =============================================================================
# Catalog Endpoints
# =============================================================================

@app.get("/services", response_model=list[Service], tags=["Catalog"])
def search_services(
    search: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
    max_delivery_days: Optional[int] = None,
    sort: SortOption = SortOption.RELEVANCE,
    user_id: Optional[str] = None,
    catalog: CatalogService = Depends(get_catalog),
):
    """Filter and sort the catalog."""
    try:
        params = ListingQuery(
            search=search,
            category=category,
            min_price=min_price,
            max_price=max_price,
            max_delivery_days=max_delivery_days,
            sort=sort,
        )
    except PydanticValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return catalog.search(params, user_id=user_id)


@app.get("/feed", response_model=list[Service], tags=["Catalog"])
def get_feed(
    limit: Optional[int] = Query(default=None, ge=1),
    catalog: CatalogService = Depends(get_catalog),
):
    """The home feed, ranked by relevance score."""
    return catalog.feed(limit=limit)


@app.get("/services/{service_id}", response_model=Service, tags=["Catalog"])
def get_service(
    service_id: str,
    user_id: Optional[str] = None,
    catalog: CatalogService = Depends(get_catalog),
):
    """Service detail; records a view."""
    return catalog.record_view(service_id, user_id=user_id)


@app.post("/services", response_model=Service, status_code=201, tags=["Catalog"])
def publish_service(request: PublishServiceRequest, catalog: CatalogService = Depends(get_catalog)):
    """Publish a new service."""
    return catalog.publish_service(
        creator=request.creator,
        title=request.title,
        description=request.description,
        category=request.category,
        packages=request.packages,
        tags=request.tags,
        portfolio=request.portfolio,
    )


@app.put("/services/{service_id}/packages", response_model=Service, tags=["Catalog"])
def update_packages(
    service_id: str,
    request: UpdatePackagesRequest,
    catalog: CatalogService = Depends(get_catalog),
):
    """Replace a service's packages (owner only)."""
    return catalog.update_packages(service_id, request.creator_id, request.packages)


@app.post("/services/{service_id}/interest", response_model=Service, tags=["Catalog"])
def register_interest(
    service_id: str,
    user_id: Optional[str] = None,
    catalog: CatalogService = Depends(get_catalog),
):
    """Register a buyer's interest in a service."""
    return catalog.register_interest(service_id, user_id=user_id)


# =============================================================================
# Order Endpoints
# =============================================================================

@app.post("/orders", response_model=Order, status_code=201, tags=["Orders"])
def create_order(request: CheckoutRequest, ordering: OrderingService = Depends(get_ordering)):
    """Check out a package."""
    return ordering.checkout(
        service_id=request.service_id,
        package_id=request.package_id,
        buyer=request.buyer,
        description=request.description,
        duration=request.duration,
        requirements=request.requirements,
        contact_phone=request.contact_phone,
    )


@app.get("/orders/{order_id}", response_model=OrderView, tags=["Orders"])
def get_order(order_id: str, ordering: OrderingService = Depends(get_ordering)):
    """An order and the actions each party may take next."""
    order = ordering.get_order(order_id)
    return OrderView(
        order=order,
        buyer_actions=ordering.allowed_actions(order_id, ActorRole.BUYER),
        seller_actions=ordering.allowed_actions(order_id, ActorRole.SELLER),
    )


@app.post("/orders/{order_id}/actions", response_model=ActionResponse, tags=["Orders"])
def perform_action(
    order_id: str,
    request: ActionRequest,
    ordering: OrderingService = Depends(get_ordering),
):
    """Apply an action to an order."""
    result = ordering.perform_action(order_id, request.action, request.actor)
    return ActionResponse(order=result.order, event=result.event.to_dict())


@app.get("/inbox/{recipient_id}", tags=["Orders"])
def get_inbox(recipient_id: str) -> list[dict[str, Any]]:
    """Notifications delivered to a buyer or seller."""
    get_bus().wait_for_pending()
    return [
        {
            "notification_type": m.notification_type,
            "title": m.title,
            "order_id": m.order_id,
            "timestamp": m.timestamp.isoformat(),
        }
        for m in get_channel().get_inbox(recipient_id)
    ]


# =============================================================================
# Dashboard
# =============================================================================

@app.get("/sellers/{seller_id}/dashboard", response_model=DashboardStats, tags=["Dashboard"])
def seller_dashboard(seller_id: str, store: DataStore = Depends(get_store)):
    """Dashboard statistics for a seller."""
    services = store.get_services_by_creator(seller_id)
    rating = services[0].creator.rating if services else 0.0
    return aggregate(store.get_orders_by_seller(seller_id), seller_id, rating=rating)
