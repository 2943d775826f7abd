"""
Fixtures for integration tests.

Provides:
- In-memory SQLite database and a UnitOfWork factory over it
- Mock notification client that records delivered events
- A controllable clock
- Ledger services wired the way the API wires them
- Test client for the FastAPI app
"""

from datetime import datetime, timedelta
from typing import AsyncGenerator, List
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from parcel_ledger.main import app
from parcel_ledger.application.dto import IssueTokenRequest, PurchaseRequest
from parcel_ledger.application.services import (
    CreditTokenService,
    EventDispatcher,
    InstallmentPlanGenerator,
    OverdueScanner,
    PaymentReconciler,
    PlanService,
    PurchaseService,
    RescheduleService,
)
from parcel_ledger.core.dependencies import get_notification_client, get_uow_factory
from parcel_ledger.domain.entities import LedgerEvent
from parcel_ledger.domain.interfaces import DeliveryResult, NotificationClient
from parcel_ledger.infrastructure.database import Base, create_sessionmaker
from parcel_ledger.infrastructure.unit_of_work import sqlalchemy_uow_factory
from parcel_ledger.service.installments import LedgerSettings


# =============================================================================
# Test Doubles
# =============================================================================

class MockNotificationClient(NotificationClient):
    """Mock notification client that tracks delivered events."""

    def __init__(self, fail_mode: bool = False):
        self.fail_mode = fail_mode
        self.call_count = 0
        self.events_sent: List[LedgerEvent] = []

    async def send_event(self, event: LedgerEvent) -> DeliveryResult:
        self.call_count += 1

        if self.fail_mode:
            return DeliveryResult(delivered=False)

        self.events_sent.append(event)
        return DeliveryResult(delivered=True)

    def sent_types(self) -> List[str]:
        return [event.event_type.value for event in self.events_sent]


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def uow_factory(test_engine):
    """UnitOfWork factory over the test database."""
    return sqlalchemy_uow_factory(create_sessionmaker(test_engine))


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 1, 12, 0, 0))


@pytest.fixture
def ledger_config() -> LedgerSettings:
    return LedgerSettings()


@pytest.fixture
def notification_client() -> MockNotificationClient:
    return MockNotificationClient()


@pytest.fixture
def dispatcher(uow_factory, notification_client) -> EventDispatcher:
    return EventDispatcher(uow_factory, notification_client)


@pytest.fixture
def token_service(uow_factory, dispatcher, ledger_config, clock) -> CreditTokenService:
    return CreditTokenService(
        uow_factory,
        dispatcher=dispatcher,
        ledger_config=ledger_config,
        clock=clock,
    )


@pytest.fixture
def plan_generator(uow_factory, dispatcher, ledger_config, clock) -> InstallmentPlanGenerator:
    return InstallmentPlanGenerator(
        uow_factory,
        dispatcher=dispatcher,
        ledger_config=ledger_config,
        clock=clock,
    )


@pytest.fixture
def purchase_service(token_service, plan_generator, clock) -> PurchaseService:
    return PurchaseService(token_service, plan_generator, clock=clock)


@pytest.fixture
def reconciler(uow_factory, dispatcher, clock) -> PaymentReconciler:
    return PaymentReconciler(uow_factory, dispatcher=dispatcher, clock=clock)


@pytest.fixture
def scanner(uow_factory, token_service, dispatcher, ledger_config, clock) -> OverdueScanner:
    return OverdueScanner(
        uow_factory,
        token_service,
        dispatcher=dispatcher,
        ledger_config=ledger_config,
        clock=clock,
    )


@pytest.fixture
def reschedule_service(uow_factory) -> RescheduleService:
    return RescheduleService(uow_factory)


@pytest.fixture
def plan_service(uow_factory) -> PlanService:
    return PlanService(uow_factory)


# =============================================================================
# Helper Fixtures
# =============================================================================

@pytest.fixture
def issue_token(token_service):
    """Issue a token for an owner; keyword arguments override the request."""

    async def _issue(owner_id: str = "owner_1", limit: int = 100000, **kwargs):
        request = IssueTokenRequest(
            owner_id=owner_id,
            approved_limit_cents=limit,
            **kwargs,
        )
        return await token_service.issue(request)

    return _issue


@pytest.fixture
def make_purchase(purchase_service):
    """Purchase against a token issued by `issue_token`."""

    async def _purchase(token, amount: int, installments: int, **kwargs):
        request = PurchaseRequest(
            owner_id=kwargs.pop("owner_id", token.owner_id),
            token_id=UUID(token.token_id),
            amount_cents=amount,
            installments=installments,
            **kwargs,
        )
        return await purchase_service.purchase(request)

    return _purchase


# =============================================================================
# App Client Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def client(
    uow_factory,
    notification_client: MockNotificationClient,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with mocked dependencies.

    This client:
    - Uses the in-memory SQLite database
    - Mocks the notification client
    """
    app.dependency_overrides[get_uow_factory] = lambda: uow_factory
    app.dependency_overrides[get_notification_client] = lambda: notification_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
