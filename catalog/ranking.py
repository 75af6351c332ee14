"""
Feed ranking function.

Default ordering of the listing feed when no explicit sort is requested.
Combines trust (creator rating) and popularity (sales, interest) into one
score so that popular AND trusted services surface above new, low-signal ones:

    score = rating * 20 + sales_count * 0.5 + interested_count * 2

The score is monotonic in every signal: raising rating, sales or interest
for a service never lowers its rank against an unchanged competitor.
"""

from shared.models import Service

RATING_WEIGHT = 20.0
SALES_WEIGHT = 0.5
INTEREST_WEIGHT = 2.0


def score(service: Service) -> float:
    """Relevance score of a single service. Pure, no hidden state."""
    return (
        service.creator.rating * RATING_WEIGHT
        + service.sales_count * SALES_WEIGHT
        + service.interested_count * INTEREST_WEIGHT
    )


def rank(services: list[Service]) -> list[Service]:
    """
    Order services by relevance score, highest first.

    Ties keep their input order.
    """
    return sorted(services, key=lambda s: -score(s))
