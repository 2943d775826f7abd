"""
Integration tests for the ledger API endpoints.

These tests verify:
1. Token issue, lookup, freeze and unfreeze over HTTP
2. Purchase, quote, plan and settlement endpoints
3. Domain errors map to status codes with a uniform error body
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from parcel_ledger.domain.entities import LedgerEvent, LedgerEventType


async def _issue(client: AsyncClient, owner_id: str = "owner_api", limit: int = 100000, **extra) -> dict:
    response = await client.post(
        "/v1/tokens",
        json={"owner_id": owner_id, "approved_limit_cents": limit, **extra},
    )
    assert response.status_code == 201
    return response.json()


async def _purchase(client: AsyncClient, token: dict, amount: int, installments: int, **extra):
    return await client.post(
        "/v1/purchases",
        json={
            "owner_id": token["owner_id"],
            "token_id": token["token_id"],
            "amount_cents": amount,
            "installments": installments,
            **extra,
        },
    )


# =============================================================================
# Token Endpoint Tests
# =============================================================================

class TestTokenEndpoints:
    """Tests for /v1/tokens."""

    @pytest.mark.asyncio
    async def test_issue_token(self, client: AsyncClient):
        data = await _issue(client, limit=50000)

        assert data["owner_id"] == "owner_api"
        assert data["status"] == "active"
        assert data["credit_limit_cents"] == 50000
        assert data["used_amount_cents"] == 0
        assert data["available_cents"] == 50000
        assert data["max_installments"] == 4
        assert data["expires_at"].endswith("Z")

    @pytest.mark.asyncio
    async def test_issue_second_active_token_conflicts(self, client: AsyncClient):
        await _issue(client)

        response = await client.post(
            "/v1/tokens",
            json={"owner_id": "owner_api", "approved_limit_cents": 1000},
        )

        assert response.status_code == 409
        assert response.json()["error"] == "DUPLICATE_ACTIVE_TOKEN"

    @pytest.mark.asyncio
    async def test_issue_rejects_schema_violation(self, client: AsyncClient):
        response = await client.post(
            "/v1/tokens",
            json={"owner_id": "owner_api", "approved_limit_cents": 0},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_get_token_and_active_token(self, client: AsyncClient):
        token = await _issue(client)

        by_id = await client.get(f"/v1/tokens/{token['token_id']}")
        active = await client.get("/v1/tokens/active", params={"owner_id": "owner_api"})

        assert by_id.status_code == 200
        assert active.status_code == 200
        assert by_id.json() == active.json()

    @pytest.mark.asyncio
    async def test_get_unknown_token(self, client: AsyncClient):
        response = await client.get(f"/v1/tokens/{uuid4()}")

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "TOKEN_NOT_FOUND"
        assert "message" in data
        assert "request_id" in data

    @pytest.mark.asyncio
    async def test_token_plan_history(self, client: AsyncClient):
        token = await _issue(client)
        first = (await _purchase(client, token, 4000, 2)).json()["plan"]
        second = (await _purchase(client, token, 1000, 1)).json()["plan"]

        history = await client.get(f"/v1/tokens/{token['token_id']}/plans")
        unknown = await client.get(f"/v1/tokens/{uuid4()}/plans")

        assert history.status_code == 200
        assert {plan["plan_id"] for plan in history.json()} == {
            first["plan_id"],
            second["plan_id"],
        }
        assert all(plan["token_id"] == token["token_id"] for plan in history.json())
        assert unknown.status_code == 404
        assert unknown.json()["error"] == "TOKEN_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_freeze_and_unfreeze(self, client: AsyncClient):
        token = await _issue(client)

        frozen = await client.post(f"/v1/tokens/{token['token_id']}/freeze")
        again = await client.post(f"/v1/tokens/{token['token_id']}/freeze")
        unfrozen = await client.post(f"/v1/tokens/{token['token_id']}/unfreeze")

        assert frozen.json()["status"] == "frozen"
        assert again.status_code == 409
        assert again.json()["error"] == "ILLEGAL_TRANSITION"
        assert unfrozen.json()["status"] == "active"


# =============================================================================
# Purchase and Plan Endpoint Tests
# =============================================================================

class TestPurchaseEndpoints:
    """Tests for /v1/purchases and /v1/plans."""

    @pytest.mark.asyncio
    async def test_purchase_creates_plan(self, client: AsyncClient):
        token = await _issue(client)

        response = await _purchase(client, token, 10000, 3)

        assert response.status_code == 201
        data = response.json()
        assert data["available_cents"] == 90000
        plan = data["plan"]
        assert plan["status"] == "active"
        assert [p["amount_cents"] for p in plan["payments"]] == [3334, 3334, 3332]
        assert plan["next_due_date"] == plan["payments"][0]["due_date"]

    @pytest.mark.asyncio
    async def test_quote_does_not_reserve(self, client: AsyncClient):
        token = await _issue(client)

        response = await client.post(
            "/v1/purchases/quote",
            json={"amount_cents": 10000, "installments": 3, "interest_rate_bps": 200},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_cents"] == 10403
        assert data["interest_cents"] == 403
        assert len(data["installments"]) == 3

        stored = await client.get(f"/v1/tokens/{token['token_id']}")
        assert stored.json()["used_amount_cents"] == 0

    @pytest.mark.asyncio
    async def test_purchase_other_owner_forbidden(self, client: AsyncClient):
        token = await _issue(client)

        response = await _purchase(client, {**token, "owner_id": "intruder"}, 1000, 2)

        assert response.status_code == 403
        assert response.json()["error"] == "NOT_OWNER"

    @pytest.mark.asyncio
    async def test_purchase_overdraft_conflicts(self, client: AsyncClient):
        token = await _issue(client, limit=5000)

        response = await _purchase(client, token, 6000, 2)

        assert response.status_code == 409
        assert response.json()["error"] == "INSUFFICIENT_CREDIT"

    @pytest.mark.asyncio
    async def test_purchase_too_many_installments(self, client: AsyncClient):
        token = await _issue(client)

        response = await _purchase(client, token, 6000, 6)

        assert response.status_code == 400
        assert response.json()["error"] == "TOO_MANY_INSTALLMENTS"

    @pytest.mark.asyncio
    async def test_get_and_list_plans(self, client: AsyncClient):
        token = await _issue(client)
        created = (await _purchase(client, token, 4000, 2)).json()["plan"]

        by_id = await client.get(f"/v1/plans/{created['plan_id']}")
        listed = await client.get("/v1/plans", params={"owner_id": "owner_api"})

        assert by_id.status_code == 200
        assert by_id.json()["plan_id"] == created["plan_id"]
        assert [plan["plan_id"] for plan in listed.json()] == [created["plan_id"]]

    @pytest.mark.asyncio
    async def test_list_plans_by_status(self, client: AsyncClient):
        token = await _issue(client)
        open_plan = (await _purchase(client, token, 4000, 2)).json()["plan"]
        paid_plan = (await _purchase(client, token, 1000, 1)).json()["plan"]
        await client.post(f"/v1/payments/{paid_plan['payments'][0]['payment_id']}/settle")

        active = await client.get("/v1/plans", params={"owner_id": "owner_api", "status": "active"})
        completed = await client.get(
            "/v1/plans",
            params={"owner_id": "owner_api", "status": "completed"},
        )
        unknown = await client.get("/v1/plans", params={"owner_id": "owner_api", "status": "paused"})

        assert [plan["plan_id"] for plan in active.json()] == [open_plan["plan_id"]]
        assert [plan["plan_id"] for plan in completed.json()] == [paid_plan["plan_id"]]
        assert unknown.status_code == 422

    @pytest.mark.asyncio
    async def test_get_unknown_plan(self, client: AsyncClient):
        response = await client.get(f"/v1/plans/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "PLAN_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_reschedule(self, client: AsyncClient):
        token = await _issue(client)
        plan = (await _purchase(client, token, 4000, 2)).json()["plan"]

        response = await client.post(
            f"/v1/plans/{plan['plan_id']}/reschedule",
            json={"new_due_dates": ["2027-01-10", "2027-02-10"]},
        )
        mismatch = await client.post(
            f"/v1/plans/{plan['plan_id']}/reschedule",
            json={"new_due_dates": ["2027-01-10"]},
        )

        assert response.status_code == 200
        assert [p["due_date"] for p in response.json()["payments"]] == [
            "2027-01-10",
            "2027-02-10",
        ]
        assert mismatch.status_code == 400
        assert mismatch.json()["error"] == "COUNT_MISMATCH"


# =============================================================================
# Payment Endpoint Tests
# =============================================================================

class TestPaymentEndpoints:
    """Tests for /v1/payments."""

    @pytest.mark.asyncio
    async def test_settle_and_settle_again(self, client: AsyncClient):
        token = await _issue(client)
        plan = (await _purchase(client, token, 4000, 2)).json()["plan"]
        payment_id = plan["payments"][0]["payment_id"]

        first = await client.post(f"/v1/payments/{payment_id}/settle")
        second = await client.post(f"/v1/payments/{payment_id}/settle")

        assert first.status_code == 200
        assert first.json()["available_cents"] == 98000
        assert first.json()["payment"]["status"] == "paid"
        assert second.status_code == 409
        assert second.json()["error"] == "ALREADY_PAID"

    @pytest.mark.asyncio
    async def test_settle_with_paid_at(self, client: AsyncClient):
        token = await _issue(client)
        plan = (await _purchase(client, token, 4000, 2)).json()["plan"]
        payment_id = plan["payments"][0]["payment_id"]

        response = await client.post(
            f"/v1/payments/{payment_id}/settle",
            json={"paid_at": "2026-05-01T10:00:00+02:00"},
        )

        assert response.json()["payment"]["paid_at"] == "2026-05-01T08:00:00Z"

    @pytest.mark.asyncio
    async def test_upcoming_payments(self, client: AsyncClient):
        token = await _issue(client)
        plan = (await _purchase(client, token, 6000, 3)).json()["plan"]
        await client.post(f"/v1/payments/{plan['payments'][0]['payment_id']}/settle")

        upcoming = await client.get("/v1/payments/upcoming", params={"owner_id": "owner_api"})
        limited = await client.get(
            "/v1/payments/upcoming",
            params={"owner_id": "owner_api", "limit": 1},
        )
        invalid = await client.get(
            "/v1/payments/upcoming",
            params={"owner_id": "owner_api", "limit": 0},
        )

        assert upcoming.status_code == 200
        assert [p["installment_number"] for p in upcoming.json()] == [2, 3]
        assert all(p["plan_id"] == plan["plan_id"] for p in upcoming.json())
        assert [p["installment_number"] for p in limited.json()] == [2]
        assert invalid.status_code == 422

    @pytest.mark.asyncio
    async def test_settle_unknown_payment(self, client: AsyncClient):
        response = await client.post(f"/v1/payments/{uuid4()}/settle")

        assert response.status_code == 404
        assert response.json()["error"] == "PAYMENT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_charge_then_confirmation(self, client: AsyncClient):
        token = await _issue(client)
        plan = (await _purchase(client, token, 4000, 2)).json()["plan"]
        payment_id = plan["payments"][1]["payment_id"]

        attached = await client.post(
            f"/v1/payments/{payment_id}/charge",
            json={"external_charge_id": "ch_api"},
        )
        confirmed = await client.post(
            "/v1/payments/confirmations",
            json={"external_charge_id": "ch_api", "paid_amount_cents": 2000},
        )

        assert attached.status_code == 200
        assert attached.json()["payment_id"] == payment_id
        assert confirmed.status_code == 200
        assert confirmed.json()["payment"]["installment_number"] == 2

    @pytest.mark.asyncio
    async def test_underpaid_confirmation(self, client: AsyncClient):
        token = await _issue(client)
        plan = (await _purchase(client, token, 4000, 2)).json()["plan"]

        response = await client.post(
            "/v1/payments/confirmations",
            json={"payment_id": plan["payments"][0]["payment_id"], "paid_amount_cents": 10},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_AMOUNT"

    @pytest.mark.asyncio
    async def test_confirmation_without_reference(self, client: AsyncClient):
        response = await client.post(
            "/v1/payments/confirmations",
            json={"paid_amount_cents": 2000},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_REQUEST"


# =============================================================================
# Admin and Service Endpoint Tests
# =============================================================================

class TestAdminEndpoints:
    """Tests for /v1/admin, health and request tracing."""

    @pytest.mark.asyncio
    async def test_overdue_scan(self, client: AsyncClient):
        token = await _issue(client)
        await _purchase(client, token, 4000, 2)

        response = await client.post(
            "/v1/admin/overdue-scan",
            json={"as_of": "2099-01-01"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["as_of"] == "2099-01-01"
        assert data["marked_overdue"] == 2

    @pytest.mark.asyncio
    async def test_overdue_scan_without_body(self, client: AsyncClient):
        response = await client.post("/v1/admin/overdue-scan")

        assert response.status_code == 200
        assert response.json()["marked_overdue"] == 0

    @pytest.mark.asyncio
    async def test_dispatch_pending_events(self, client: AsyncClient, uow_factory, notification_client):
        async with uow_factory() as uow:
            await uow.events.add(
                LedgerEvent(
                    event_type=LedgerEventType.TOKEN_ISSUED,
                    owner_id="owner_api",
                    entity_id=str(uuid4()),
                )
            )

        response = await client.post("/v1/admin/events/dispatch")
        again = await client.post("/v1/admin/events/dispatch")

        assert response.status_code == 200
        assert response.json()["delivered"] == 1
        assert again.json()["delivered"] == 0
        assert notification_client.sent_types() == ["token_issued"]

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client: AsyncClient):
        response = await client.get(
            f"/v1/tokens/{uuid4()}",
            headers={"X-Request-ID": "req-123"},
        )

        assert response.headers["X-Request-ID"] == "req-123"
        assert response.json()["request_id"] == "req-123"
