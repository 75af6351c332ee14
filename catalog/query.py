"""
Listing query engine.

Given a catalog snapshot and a ListingQuery, produces the ordered list of
services to show. The engine is a pure function: no side effects, no hidden
state, deterministic for a given snapshot and query.

Filtering (a service failing any active filter is excluded):
1. Text: case-insensitive substring of title, description, any tag or
   the creator's name. Empty/absent search = no filtering.
2. Category: exact match, skipped for "all" or absent.
3. Price band: service.min_price within [min_price, max_price], inclusive.
4. Delivery ceiling: service.min_delivery_days <= max_delivery_days.

Sorting happens once, on the full filtered set. Every sort is stable:
services with equal keys keep their catalog order. Descending sorts negate
the key instead of passing reverse=True, which would break that guarantee.
"""

from typing import Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from catalog.ranking import score
from shared.errors import ValidationError
from shared.models import Service, ServiceCategory, SortOption

ALL_CATEGORIES = "all"

# Filter defaults of the browse screen; narrower values count as active filters
DEFAULT_PRICE_RANGE = (0, 200_000)
DEFAULT_MAX_DELIVERY_DAYS = 30


class ListingQuery(BaseModel):
    """
    Parameters of a listing request.

    Prices are in minor units and apply to each service's min_price;
    the delivery ceiling applies to its min_delivery_days.
    """
    search: Optional[str] = Field(default=None, description="Free-text search")
    category: Optional[Union[ServiceCategory, Literal["all"]]] = Field(
        default=None,
        description="One category, or 'all'",
    )
    min_price: Optional[int] = Field(default=None, ge=0)
    max_price: Optional[int] = Field(default=None, ge=0)
    max_delivery_days: Optional[int] = Field(default=None, ge=1)
    sort: SortOption = Field(default=SortOption.RELEVANCE)

    model_config = ConfigDict(use_enum_values=True, frozen=True)

    def check(self) -> None:
        """
        Reject malformed combinations.

        Raises:
            ValidationError: If the price range is inverted
        """
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValidationError(
                f"Invalid price range: {self.min_price} > {self.max_price}",
                field="price_range",
            )

    def active_filters(self) -> list[str]:
        """Names of the filters that narrow the catalog beyond the browse defaults."""
        active = []
        if self.search:
            active.append("search")
        if self.category not in (None, ALL_CATEGORIES):
            active.append("category")
        lo, hi = DEFAULT_PRICE_RANGE
        if (self.min_price or 0) > lo or (self.max_price is not None and self.max_price < hi):
            active.append("price")
        if self.max_delivery_days is not None and self.max_delivery_days < DEFAULT_MAX_DELIVERY_DAYS:
            active.append("delivery")
        return active


# =============================================================================
# Filters
# =============================================================================

def _matches_text(service: Service, search: Optional[str]) -> bool:
    if not search:
        return True
    needle = search.lower()
    return (
        needle in service.title.lower()
        or needle in service.description.lower()
        or any(needle in tag.lower() for tag in service.tags)
        or needle in service.creator.name.lower()
    )


def _matches_category(service: Service, category: Optional[str]) -> bool:
    if category is None or category == ALL_CATEGORIES:
        return True
    return service.category == category


def _matches_price(service: Service, lo: Optional[int], hi: Optional[int]) -> bool:
    if lo is not None and service.min_price < lo:
        return False
    if hi is not None and service.min_price > hi:
        return False
    return True


def _matches_delivery(service: Service, max_days: Optional[int]) -> bool:
    return max_days is None or service.min_delivery_days <= max_days


def matches(service: Service, params: ListingQuery) -> bool:
    """True if the service passes every active filter of the query."""
    return (
        _matches_text(service, params.search)
        and _matches_category(service, params.category)
        and _matches_price(service, params.min_price, params.max_price)
        and _matches_delivery(service, params.max_delivery_days)
    )


# =============================================================================
# Sorting
# =============================================================================

SORT_KEYS: dict[SortOption, Callable[[Service], float]] = {
    SortOption.RELEVANCE: lambda s: -score(s),
    SortOption.BEST_SELLING: lambda s: -s.sales_count,
    SortOption.BEST_RATED: lambda s: -s.creator.rating,
    SortOption.PRICE_LOW: lambda s: s.min_price,
    SortOption.PRICE_HIGH: lambda s: -s.min_price,
    SortOption.FASTEST: lambda s: s.min_delivery_days,
}


def query(catalog: list[Service], params: ListingQuery) -> list[Service]:
    """
    Filter and sort a catalog snapshot.

    Args:
        catalog: Services in catalog order
        params: The listing query

    Returns:
        A new list; the input is never modified

    Raises:
        ValidationError: If the query parameters are malformed
    """
    params.check()
    filtered = [s for s in catalog if matches(s, params)]
    return sorted(filtered, key=SORT_KEYS[SortOption(params.sort)])
