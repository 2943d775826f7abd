"""
Concurrency tests for the credit ledger.

These run against a file-backed SQLite database so every unit of work gets
its own connection and concurrent writers really contend for the lock.

These tests verify:
1. Concurrent reservations never push used credit past the limit
2. Interleaved reservations and releases keep the ledger balanced
3. A payment settled concurrently is paid and released exactly once
4. A charge reference raced onto two payments lands on exactly one
"""

import asyncio
from random import Random
from uuid import UUID

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from parcel_ledger.application.dto import IssueTokenRequest, PurchaseRequest
from parcel_ledger.application.services import (
    CreditTokenService,
    InstallmentPlanGenerator,
    PaymentReconciler,
    PurchaseService,
)
from parcel_ledger.domain.exceptions import (
    AlreadyPaidException,
    InsufficientCreditException,
    InvalidRequestException,
)
from parcel_ledger.infrastructure.database import Base, create_sessionmaker
from parcel_ledger.infrastructure.unit_of_work import sqlalchemy_uow_factory


# =============================================================================
# Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def file_engine(tmp_path):
    """File-backed SQLite engine; writers wait on the lock instead of failing."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def file_uow_factory(file_engine):
    return sqlalchemy_uow_factory(create_sessionmaker(file_engine))


@pytest.fixture
def ledger(file_uow_factory, ledger_config, clock):
    """Token service, purchase service and reconciler without notifications."""
    token_service = CreditTokenService(
        file_uow_factory,
        ledger_config=ledger_config,
        clock=clock,
    )
    plan_generator = InstallmentPlanGenerator(
        file_uow_factory,
        ledger_config=ledger_config,
        clock=clock,
    )
    return (
        token_service,
        PurchaseService(token_service, plan_generator, clock=clock),
        PaymentReconciler(file_uow_factory, clock=clock),
    )


async def _outcome(coro):
    """Run a ledger call and report its result or the exception it raised."""
    try:
        return await coro
    except (
        InsufficientCreditException,
        AlreadyPaidException,
        InvalidRequestException,
    ) as exc:
        return exc


# =============================================================================
# Reservation Tests
# =============================================================================

class TestConcurrentReservations:
    """The guarded reserve holds under contention."""

    @pytest.mark.asyncio
    async def test_concurrent_reserves_never_exceed_limit(self, ledger):
        token_service, _, _ = ledger
        token = await token_service.issue(
            IssueTokenRequest(owner_id="owner_race", approved_limit_cents=50000)
        )
        token_id = UUID(token.token_id)
        rng = Random(42)
        amounts = [rng.randint(1000, 9000) for _ in range(20)]

        outcomes = await asyncio.gather(
            *(_outcome(token_service.reserve(token_id, amount)) for amount in amounts)
        )

        reserved = [
            amount
            for amount, outcome in zip(amounts, outcomes)
            if not isinstance(outcome, Exception)
        ]
        stored = await token_service.get_token(token_id)
        assert stored.used_amount_cents == sum(reserved)
        assert stored.used_amount_cents <= 50000
        assert stored.version == len(reserved)
        assert sum(amounts) > 50000
        assert any(isinstance(outcome, InsufficientCreditException) for outcome in outcomes)

    @pytest.mark.asyncio
    async def test_interleaved_reserves_and_releases_balance(self, ledger):
        token_service, _, _ = ledger
        token = await token_service.issue(
            IssueTokenRequest(owner_id="owner_mixed", approved_limit_cents=100000)
        )
        token_id = UUID(token.token_id)
        await token_service.reserve(token_id, 25000)

        calls = []
        for _ in range(10):
            calls.append(token_service.reserve(token_id, 2000))
            calls.append(token_service.release(token_id, 1000))

        outcomes = await asyncio.gather(*(_outcome(call) for call in calls))

        assert not any(isinstance(outcome, Exception) for outcome in outcomes)
        stored = await token_service.get_token(token_id)
        assert stored.used_amount_cents == 25000 + 10 * 2000 - 10 * 1000

    @pytest.mark.asyncio
    async def test_concurrent_purchases_respect_limit(self, ledger):
        token_service, purchase_service, _ = ledger
        token = await token_service.issue(
            IssueTokenRequest(owner_id="owner_shop", approved_limit_cents=30000)
        )

        requests = [
            PurchaseRequest(
                owner_id="owner_shop",
                token_id=UUID(token.token_id),
                amount_cents=10000,
                installments=2,
            )
            for _ in range(5)
        ]
        outcomes = await asyncio.gather(
            *(_outcome(purchase_service.purchase(request)) for request in requests)
        )

        succeeded = [o for o in outcomes if not isinstance(o, Exception)]
        assert len(succeeded) == 3
        stored = await token_service.get_token(UUID(token.token_id))
        assert stored.used_amount_cents == 30000


# =============================================================================
# Settlement Tests
# =============================================================================

class TestConcurrentSettlement:
    """Duplicate confirmations race to settle the same payment."""

    @pytest.mark.asyncio
    async def test_same_payment_settles_once(self, ledger):
        token_service, purchase_service, reconciler = ledger
        token = await token_service.issue(
            IssueTokenRequest(owner_id="owner_dup", approved_limit_cents=40000)
        )
        response = await purchase_service.purchase(
            PurchaseRequest(
                owner_id="owner_dup",
                token_id=UUID(token.token_id),
                amount_cents=40000,
                installments=4,
            )
        )
        payment_id = UUID(response.plan.payments[0].payment_id)

        outcomes = await asyncio.gather(
            *(_outcome(reconciler.settle(payment_id)) for _ in range(5))
        )

        settled = [o for o in outcomes if not isinstance(o, Exception)]
        duplicates = [o for o in outcomes if isinstance(o, AlreadyPaidException)]
        assert len(settled) == 1
        assert len(duplicates) == 4

        stored = await token_service.get_token(UUID(token.token_id))
        assert stored.used_amount_cents == 30000
        assert settled[0].paid_installments == 1


# =============================================================================
# Charge Attachment Tests
# =============================================================================

class TestConcurrentChargeAttachment:
    """One payment-rail charge reference, two payments racing for it."""

    @pytest.mark.asyncio
    async def test_same_charge_attached_to_one_payment(self, ledger):
        token_service, purchase_service, reconciler = ledger
        token = await token_service.issue(
            IssueTokenRequest(owner_id="owner_charge", approved_limit_cents=20000)
        )
        response = await purchase_service.purchase(
            PurchaseRequest(
                owner_id="owner_charge",
                token_id=UUID(token.token_id),
                amount_cents=20000,
                installments=2,
            )
        )
        payment_ids = [UUID(p.payment_id) for p in response.plan.payments]

        outcomes = await asyncio.gather(
            *(
                _outcome(reconciler.attach_charge(payment_id, "ch_shared"))
                for payment_id in payment_ids
            )
        )

        attached = [o for o in outcomes if not isinstance(o, Exception)]
        rejected = [o for o in outcomes if isinstance(o, InvalidRequestException)]
        assert len(attached) == 1
        assert len(rejected) == 1
