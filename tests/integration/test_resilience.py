"""
Integration tests for notification delivery and failure handling.

These tests verify:
1. Notification failures never roll back a committed ledger change
2. Delivery outcome is recorded on the event outbox
3. The HTTP notification client retries with backoff
"""

from unittest.mock import AsyncMock, patch
from uuid import UUID

import httpx
import pytest
from sqlalchemy import select

from parcel_ledger.application.services import EventDispatcher
from parcel_ledger.domain.entities import LedgerEvent, LedgerEventType
from parcel_ledger.domain.interfaces import DeliveryResult
from parcel_ledger.infrastructure.clients import HttpNotificationClient
from parcel_ledger.infrastructure.database.models import LedgerEventModel


async def _event_statuses(engine) -> dict:
    async with engine.connect() as conn:
        result = await conn.execute(
            select(LedgerEventModel.event_type, LedgerEventModel.status)
        )
        return {event_type: status for event_type, status in result.all()}


# =============================================================================
# Event Dispatch Tests
# =============================================================================

class TestEventDispatch:
    """Tests for EventDispatcher bookkeeping."""

    @pytest.mark.asyncio
    async def test_delivered_events_marked_sent(self, issue_token, test_engine):
        await issue_token()

        statuses = await _event_statuses(test_engine)

        assert statuses == {"token_issued": "sent"}

    @pytest.mark.asyncio
    async def test_failed_delivery_keeps_ledger_change(
        self,
        issue_token,
        token_service,
        notification_client,
        test_engine,
    ):
        notification_client.fail_mode = True

        token = await issue_token()

        stored = await token_service.get_token(UUID(token.token_id))
        assert stored.status.value == "active"
        assert await _event_statuses(test_engine) == {"token_issued": "failed"}

    @pytest.mark.asyncio
    async def test_bookkeeping_failure_leaves_events_pending(
        self,
        uow_factory,
        notification_client,
        test_engine,
    ):
        event = LedgerEvent(
            event_type=LedgerEventType.PLAN_CREATED,
            owner_id="owner_1",
            entity_id="plan_1",
            amount_cents=1000,
        )
        async with uow_factory() as uow:
            await uow.events.add(event)

        def broken_uow_factory():
            raise RuntimeError("database unavailable")

        dispatcher = EventDispatcher(broken_uow_factory, notification_client)

        delivered = await dispatcher.dispatch([event])

        assert delivered == 1
        assert await _event_statuses(test_engine) == {"plan_created": "pending"}

    @pytest.mark.asyncio
    async def test_dispatch_pending_delivers_oldest_first(
        self,
        uow_factory,
        dispatcher: EventDispatcher,
        notification_client,
    ):
        async with uow_factory() as uow:
            for event_type in (LedgerEventType.TOKEN_ISSUED, LedgerEventType.PLAN_CREATED):
                await uow.events.add(
                    LedgerEvent(event_type=event_type, owner_id="owner_1", entity_id="e")
                )

        delivered = await dispatcher.dispatch_pending()

        assert delivered == 2
        assert sorted(notification_client.sent_types()) == ["plan_created", "token_issued"]
        assert await dispatcher.dispatch_pending() == 0

    @pytest.mark.asyncio
    async def test_dispatch_pending_respects_limit(
        self,
        uow_factory,
        dispatcher: EventDispatcher,
    ):
        async with uow_factory() as uow:
            for _ in range(3):
                await uow.events.add(
                    LedgerEvent(
                        event_type=LedgerEventType.PAYMENT_OVERDUE,
                        owner_id="owner_1",
                        entity_id="p",
                    )
                )

        assert await dispatcher.dispatch_pending(limit=2) == 2
        assert await dispatcher.dispatch_pending(limit=2) == 1

    @pytest.mark.asyncio
    async def test_outbox_records_client_attempts(self, uow_factory, test_engine):
        event = LedgerEvent(
            event_type=LedgerEventType.PAYMENT_SETTLED,
            owner_id="owner_1",
            entity_id="payment_1",
        )
        async with uow_factory() as uow:
            await uow.events.add(event)

        client = AsyncMock()
        client.send_event.return_value = DeliveryResult(delivered=True, attempts=3)
        dispatcher = EventDispatcher(uow_factory, client)

        assert await dispatcher.dispatch([event]) == 1

        async with test_engine.connect() as conn:
            result = await conn.execute(
                select(LedgerEventModel.status, LedgerEventModel.attempts)
            )
            assert result.one() == ("sent", 3)


# =============================================================================
# HTTP Notification Client Tests
# =============================================================================

class TestHttpNotificationClient:
    """Retry behaviour of the HTTP notification client."""

    @pytest.fixture
    def event(self) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.PAYMENT_SETTLED,
            owner_id="owner_1",
            entity_id="payment_1",
            amount_cents=2500,
        )

    @pytest.mark.asyncio
    async def test_success_on_first_attempt(self, event):
        client = HttpNotificationClient(base_url="http://notify.test/events", max_retries=3)
        post = AsyncMock(return_value=httpx.Response(202))

        with patch.object(httpx.AsyncClient, "post", post):
            result = await client.send_event(event)

        assert result == DeliveryResult(delivered=True, attempts=1, status_code=202)
        assert post.await_count == 1
        assert post.await_args.kwargs["json"]["type"] == "payment_settled"
        assert post.await_args.kwargs["json"]["amount_cents"] == 2500

    @pytest.mark.asyncio
    async def test_retry_until_success(self, event):
        client = HttpNotificationClient(base_url="http://notify.test/events", max_retries=3)
        post = AsyncMock(
            side_effect=[
                httpx.Response(500),
                httpx.ConnectTimeout("timed out"),
                httpx.Response(200),
            ]
        )

        with patch.object(httpx.AsyncClient, "post", post):
            result = await client.send_event(event)

        assert result.delivered is True
        assert result.attempts == 3
        assert post.await_count == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, event):
        client = HttpNotificationClient(base_url="http://notify.test/events", max_retries=2)
        post = AsyncMock(return_value=httpx.Response(503))

        with patch.object(httpx.AsyncClient, "post", post):
            result = await client.send_event(event)

        assert result == DeliveryResult(delivered=False, attempts=2, status_code=503)
        assert post.await_count == 2

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, event):
        client = HttpNotificationClient(base_url="http://notify.test/events", max_retries=3)
        post = AsyncMock(return_value=httpx.Response(422))

        with patch.object(httpx.AsyncClient, "post", post):
            result = await client.send_event(event)

        assert result == DeliveryResult(delivered=False, attempts=1, status_code=422)
        assert post.await_count == 1

    @pytest.mark.asyncio
    async def test_rate_limit_is_retried(self, event):
        client = HttpNotificationClient(base_url="http://notify.test/events", max_retries=3)
        post = AsyncMock(side_effect=[httpx.Response(429), httpx.Response(202)])

        with patch.object(httpx.AsyncClient, "post", post):
            result = await client.send_event(event)

        assert result.delivered is True
        assert result.attempts == 2
