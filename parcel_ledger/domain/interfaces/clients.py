"""External client interfaces."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from parcel_ledger.domain.entities import LedgerEvent


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of delivering one event, counting every try made."""

    delivered: bool
    attempts: int = 1
    status_code: int | None = None


class NotificationClient(ABC):
    """
    Abstract client for the Notification subsystem.

    Receives ledger events after the state change they describe commits.
    """

    @abstractmethod
    async def send_event(self, event: LedgerEvent) -> DeliveryResult:
        """
        Deliver a ledger event.

        Args:
            event: The committed event to deliver

        Returns:
            DeliveryResult with the outcome and the number of tries made

        Note:
            Implementations retry internally; the attempt count is what
            ends up on the outbox row.
        """
        ...
