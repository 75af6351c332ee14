"""
Shared pytest fixtures for the marketplace engine tests.

These fixtures provide consistent test data and reset state between tests.
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from shared.channels import InboxChannel
from shared.data_store import DataStore
from shared.event_bus import EventBus, reset_event_bus
from shared.models import BuyerRef, Creator, CreatorLevel


@pytest.fixture
def data_dir() -> Path:
    """Path to the test data directory."""
    return Path(__file__).parent.parent / "data"


@pytest.fixture
def data_store(data_dir: Path) -> DataStore:
    """
    Fresh DataStore instance for each test.

    Uses the real JSON fixtures but creates a new instance
    so tests don't interfere with each other.
    """
    return DataStore(data_dir=data_dir)


@pytest.fixture
def event_bus() -> EventBus:
    """Fresh synchronous event bus for each test."""
    return reset_event_bus()


@pytest.fixture
def inbox() -> InboxChannel:
    """Fresh InboxChannel for each test."""
    return InboxChannel()


@pytest.fixture
def fixed_now() -> datetime:
    """Reference 'now' used by time-dependent tests (mid October 2026)."""
    return datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Catalog Fixtures
# =============================================================================

@pytest.fixture
def reels_service_id() -> str:
    """Ana's Reels service: three packages, 150.00 / 300.00 / 600.00."""
    return "svc-001"


@pytest.fixture
def scripts_service_id() -> str:
    """Bruno's script service: the most relevant service in the feed."""
    return "svc-002"


@pytest.fixture
def consulting_service_id() -> str:
    """Ana's consulting service: a single package."""
    return "svc-005"


@pytest.fixture
def ana_creator_id() -> str:
    """Creator ID for Ana Souza (tier3, owns svc-001 and svc-005)."""
    return "cr-001"


@pytest.fixture
def new_creator() -> Creator:
    """A creator with no services yet."""
    return Creator(
        id="cr-900",
        name="Lia Campos",
        rating=4.2,
        level=CreatorLevel.TIER2,
        verified=True,
    )


# =============================================================================
# Order Fixtures
# =============================================================================

@pytest.fixture
def buyer() -> BuyerRef:
    """Marina, who already has ord-001 and ord-003."""
    return BuyerRef(id="buyer-001", name="Marina Alves")


@pytest.fixture
def pending_order_id() -> str:
    """Marina's pending order on svc-001 (Basic, 150.00)."""
    return "ord-001"


@pytest.fixture
def in_progress_order_id() -> str:
    """Rafael's accepted order on svc-001 (Standard, 300.00)."""
    return "ord-002"


@pytest.fixture
def revision_order_id() -> str:
    """Rafael's order on svc-002, waiting on a revision round."""
    return "ord-005"


@pytest.fixture
def cancelled_order_id() -> str:
    """Julia's rejected order on svc-003."""
    return "ord-006"
