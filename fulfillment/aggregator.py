"""
Order aggregator for the seller dashboard.

Pure function over an order snapshot: no caching, recomputed on demand.
The seller's rating is passed through; computing ratings from reviews is
someone else's job.
"""

from datetime import datetime
from typing import Iterable, Optional

from shared.models import DashboardStats, Order, OrderStatus, utc_now

_IN_PROGRESS = {OrderStatus.IN_PROGRESS, OrderStatus.REVISION}


def _same_month(moment: datetime, now: datetime) -> bool:
    if moment.tzinfo is not None and now.tzinfo is not None:
        moment = moment.astimezone(now.tzinfo)
    return (moment.year, moment.month) == (now.year, now.month)


def aggregate(
    orders: Iterable[Order],
    seller_id: str,
    rating: float = 0.0,
    now: Optional[datetime] = None,
) -> DashboardStats:
    """
    Dashboard statistics for one seller.

    Args:
        orders: Any order snapshot; orders of other sellers are ignored
        seller_id: The seller to aggregate for
        rating: The seller's current rating, passed through as average_rating
        now: Reference time for "this month" (defaults to the current time)

    Returns:
        DashboardStats; all zeros when the seller has no orders
    """
    now = now or utc_now()
    stats = DashboardStats(seller_id=seller_id, average_rating=rating)

    for order in orders:
        if order.seller_id != seller_id:
            continue
        status = OrderStatus(order.status)
        if status == OrderStatus.COMPLETED:
            stats.completed_projects += 1
            if order.completed_at is not None and _same_month(order.completed_at, now):
                stats.monthly_earnings += order.total_price
        elif status == OrderStatus.PENDING:
            stats.pending_projects += 1
        elif status in _IN_PROGRESS:
            stats.in_progress_projects += 1

    return stats
