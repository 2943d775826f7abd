"""
Domain Interfaces (Ports)
"""

from .repositories import (
    EventRepository,
    PaymentRepository,
    PlanRepository,
    TokenRepository,
)
from .unit_of_work import UnitOfWork, UnitOfWorkFactory
from .clients import DeliveryResult, NotificationClient

__all__ = [
    "EventRepository",
    "PaymentRepository",
    "PlanRepository",
    "TokenRepository",
    "UnitOfWork",
    "UnitOfWorkFactory",
    "DeliveryResult",
    "NotificationClient",
]
