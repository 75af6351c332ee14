"""
Domain models for the marketplace engine.

These models describe the creator-services marketplace: creators publish
services made of 1-3 packages, buyers check out a package and the resulting
order moves through its lifecycle until it is completed or cancelled.

Design decisions:
- Using Pydantic for validation and serialization
- Money is stored as integer minor units (cents), currency-agnostic
- Derived service fields (min/max price, fastest delivery) are computed from
  the packages on every access and can never drift from them
- Orders keep a snapshot of the purchased package, so later edits to the
  service never change an existing order
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


def utc_now() -> datetime:
    """Timezone-aware current time, used for every timestamp in the domain."""
    return datetime.now(timezone.utc)


# =============================================================================
# Enums - closed value sets used across the domain
# =============================================================================

class ServiceCategory(str, Enum):
    """Categories a service can be listed under."""
    REELS_EDITING = "reels_editing"
    SCRIPTWRITING = "scriptwriting"
    PAID_TRAFFIC = "paid_traffic"
    POST_EDITING = "post_editing"
    CONSULTING = "consulting"


CATEGORY_LABELS: dict[ServiceCategory, str] = {
    ServiceCategory.REELS_EDITING: "Reels Editing",
    ServiceCategory.SCRIPTWRITING: "Scriptwriting",
    ServiceCategory.PAID_TRAFFIC: "Paid Traffic",
    ServiceCategory.POST_EDITING: "Post Editing",
    ServiceCategory.CONSULTING: "Consulting",
}


class CreatorLevel(str, Enum):
    """
    Creator qualification level.
    Ordered: tier1 < tier2 < tier3.
    """
    TIER1 = "tier1"
    TIER2 = "tier2"
    TIER3 = "tier3"

    @property
    def rank(self) -> int:
        return _LEVEL_RANKS[self]


_LEVEL_RANKS = {CreatorLevel.TIER1: 1, CreatorLevel.TIER2: 2, CreatorLevel.TIER3: 3}


class OrderStatus(str, Enum):
    """
    Order lifecycle states.
    COMPLETED and CANCELLED are terminal.
    """
    PENDING = "pending"             # Submitted by the buyer, awaiting the seller
    IN_PROGRESS = "in_progress"     # Accepted, seller is working on it
    REVISION = "revision"           # Waiting on a revision round
    COMPLETED = "completed"         # Delivered, payment released
    CANCELLED = "cancelled"         # Rejected by the seller, buyer refunded


class OrderAction(str, Enum):
    """Actions a buyer or seller can take on an order."""
    ACCEPT = "accept"
    REJECT = "reject"
    REQUEST_REVISION = "request_revision"
    COMPLETE = "complete"
    RESUBMIT = "resubmit"


class ActorRole(str, Enum):
    """The two parties of an order."""
    BUYER = "buyer"
    SELLER = "seller"

    @property
    def counterpart(self) -> "ActorRole":
        return ActorRole.SELLER if self is ActorRole.BUYER else ActorRole.BUYER


class SortOption(str, Enum):
    """Sort modes for listing queries."""
    RELEVANCE = "relevance"
    BEST_SELLING = "best_selling"
    BEST_RATED = "best_rated"
    PRICE_LOW = "price_low"
    PRICE_HIGH = "price_high"
    FASTEST = "fastest"


# =============================================================================
# Catalog Models
# =============================================================================

class Creator(BaseModel):
    """
    A creator offering services on the marketplace.

    Rating, review count and completed projects are recomputed by external
    collaborators after orders complete; the engine only reads them.
    """
    id: str = Field(..., description="Unique creator identifier")
    name: str = Field(..., description="Display name")
    rating: float = Field(default=0.0, ge=0.0, le=5.0, description="Average rating")
    review_count: int = Field(default=0, ge=0)
    level: CreatorLevel = Field(default=CreatorLevel.TIER1)
    verified: bool = Field(default=False)
    completed_projects: int = Field(default=0, ge=0)
    response_time: str = Field(default="", description="Human label, e.g. '~1h'")
    segment: Optional[str] = Field(default=None, description="Niche the creator works in")

    model_config = ConfigDict(use_enum_values=True, frozen=True)


class ServicePackage(BaseModel):
    """
    One purchasable tier of a service (e.g. Basic / Standard / Premium).
    """
    id: str = Field(..., description="Unique package identifier")
    name: str = Field(..., description="Package name")
    description: str = Field(default="")
    price: int = Field(..., ge=0, description="Price in minor units")
    delivery_days: int = Field(..., ge=1, description="Days to deliver")
    revisions: int = Field(default=0, ge=0, description="Included revision rounds")
    features: list[str] = Field(..., min_length=1, description="Included features")

    model_config = ConfigDict(frozen=True)

    @field_validator("features")
    @classmethod
    def _features_not_blank(cls, features: list[str]) -> list[str]:
        if any(not f.strip() for f in features):
            raise ValueError("package features must not be blank")
        return features


class Service(BaseModel):
    """
    A service listing owned by a single creator.

    The min/max price and fastest delivery are computed from the packages,
    never stored on their own.
    """
    id: str = Field(..., description="Unique service identifier")
    title: str = Field(..., min_length=1)
    description: str = Field(default="")
    category: ServiceCategory
    creator: Creator
    packages: list[ServicePackage] = Field(..., min_length=1, max_length=3)
    portfolio: list[str] = Field(default_factory=list, description="Media references")
    sales_count: int = Field(default=0, ge=0)
    interested_count: int = Field(default=0, ge=0)
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(use_enum_values=True, frozen=True)

    @computed_field
    @property
    def min_price(self) -> int:
        return min(p.price for p in self.packages)

    @computed_field
    @property
    def max_price(self) -> int:
        return max(p.price for p in self.packages)

    @computed_field
    @property
    def average_price(self) -> int:
        return sum(p.price for p in self.packages) // len(self.packages)

    @computed_field
    @property
    def min_delivery_days(self) -> int:
        return min(p.delivery_days for p in self.packages)

    def get_package(self, package_id: str) -> Optional[ServicePackage]:
        """Find one of this service's packages by ID."""
        for package in self.packages:
            if package.id == package_id:
                return package
        return None

    def has_package(self, package_id: str) -> bool:
        return self.get_package(package_id) is not None

    def with_packages(self, packages: list[ServicePackage]) -> "Service":
        """Return a re-validated copy of this service with a new package list."""
        data = self.model_dump()
        data["packages"] = [p.model_dump() for p in packages]
        return Service.model_validate(data)


# =============================================================================
# Order Models
# =============================================================================

class BuyerRef(BaseModel):
    """The buyer placing an order."""
    id: str = Field(..., description="Buyer identifier")
    name: str = Field(default="")

    model_config = ConfigDict(frozen=True)


class Order(BaseModel):
    """
    A purchase of one package of one service.

    The package is snapshotted at checkout: total_price and delivery_date
    are fixed from that snapshot and never recomputed. Orders are only
    changed by the order state machine, which produces a new version.
    """
    id: str = Field(..., description="Unique order identifier")
    service_id: str = Field(..., description="Service that was purchased")
    service_title: str = Field(default="")
    seller_id: str = Field(..., description="Creator who owns the service")
    package: ServicePackage = Field(..., description="Package as it was at checkout")
    buyer: BuyerRef
    description: str = Field(default="", description="What the buyer needs")
    duration: str = Field(default="", description="Expected project duration")
    requirements: str = Field(default="")
    contact_phone: Optional[str] = Field(default=None, description="Optional contact channel")
    status: OrderStatus = Field(default=OrderStatus.PENDING)
    total_price: int = Field(..., ge=0, description="Price in minor units at checkout")
    created_at: datetime = Field(default_factory=utc_now)
    delivery_date: datetime
    updated_at: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)
    version: int = Field(default=1, ge=1, description="Bumped on every committed transition")

    model_config = ConfigDict(use_enum_values=True, frozen=True)

    def party_id(self, role: ActorRole) -> str:
        """Identifier of the buyer or the seller of this order."""
        return self.buyer.id if role == ActorRole.BUYER else self.seller_id


# =============================================================================
# Dashboard
# =============================================================================

class DashboardStats(BaseModel):
    """Per-seller statistics shown on the creator dashboard."""
    seller_id: str
    monthly_earnings: int = Field(default=0, description="Minor units earned this month")
    completed_projects: int = Field(default=0)
    pending_projects: int = Field(default=0)
    in_progress_projects: int = Field(default=0, description="In progress or in revision")
    average_rating: float = Field(default=0.0)
