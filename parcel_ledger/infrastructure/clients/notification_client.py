"""HTTP implementation of NotificationClient."""

import asyncio

import httpx
import structlog

from parcel_ledger.core.config import settings
from parcel_ledger.core.metrics import (
    record_notification_failure,
    record_notification_retry,
    record_notification_success,
    track_operation_latency,
)
from parcel_ledger.domain.entities import LedgerEvent
from parcel_ledger.domain.interfaces import DeliveryResult, NotificationClient

logger = structlog.get_logger(__name__)

# Client errors worth another try; any other 4xx rejects the event outright
RETRYABLE_CLIENT_ERRORS = frozenset({408, 429})


class HttpNotificationClient(NotificationClient):
    """
    HTTP client for the Notification subsystem.

    Each event is posted with its id as Idempotency-Key, so a retry after a
    lost response cannot notify twice. Tries are spaced by exponential
    backoff (0.1s, 0.2s, 0.4s, ...) and counted in the DeliveryResult the
    dispatcher writes back to the outbox.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ):
        self._base_url = base_url or settings.notification_webhook_url
        self._timeout = timeout or settings.notification_timeout
        self._max_retries = max_retries or settings.notification_max_retries

    async def send_event(self, event: LedgerEvent) -> DeliveryResult:
        """Post a ledger event, retrying transient failures."""
        payload = event.to_payload()
        log = logger.bind(event_id=str(event.id), event_type=event.event_type.value)
        status_code: int | None = None
        attempts = 0

        async with httpx.AsyncClient(
            timeout=self._timeout,
            headers={"Idempotency-Key": str(event.id)},
        ) as client:
            while attempts < self._max_retries:
                if attempts:
                    record_notification_retry()
                    await asyncio.sleep(2 ** (attempts - 1) * 0.1)

                attempts += 1
                status_code = await self._attempt(client, payload, log, attempts)

                if status_code is None:
                    continue
                if status_code < 400:
                    record_notification_success()
                    log.info("notification_sent", status_code=status_code, attempts=attempts)
                    return DeliveryResult(True, attempts, status_code)
                if status_code < 500 and status_code not in RETRYABLE_CLIENT_ERRORS:
                    break

        record_notification_failure()
        log.error(
            "notification_undelivered",
            status_code=status_code,
            attempts=attempts,
        )
        return DeliveryResult(False, attempts, status_code)

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        payload: dict,
        log,
        attempt: int,
    ) -> int | None:
        """One POST; the response status, or None when no response arrived."""
        try:
            with track_operation_latency("notification"):
                response = await client.post(self._base_url, json=payload)
        except httpx.TimeoutException:
            log.warning("notification_timeout", attempt=attempt)
            return None
        except httpx.HTTPError as exc:
            log.warning("notification_error", attempt=attempt, error=str(exc))
            return None

        if response.status_code >= 400:
            log.warning(
                "notification_rejected",
                attempt=attempt,
                status_code=response.status_code,
                response=response.text[:200],
            )
        return response.status_code
