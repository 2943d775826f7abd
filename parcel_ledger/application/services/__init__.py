"""Application services - orchestrate ledger use cases."""

from .event_dispatcher import EventDispatcher
from .credit_token_service import CreditTokenService
from .plan_generator import InstallmentPlanGenerator
from .payment_reconciler import PaymentReconciler
from .overdue_scanner import OverdueScanner
from .reschedule_service import RescheduleService
from .purchase_service import PurchaseService
from .plan_service import PlanService

__all__ = [
    "EventDispatcher",
    "CreditTokenService",
    "InstallmentPlanGenerator",
    "PaymentReconciler",
    "OverdueScanner",
    "RescheduleService",
    "PurchaseService",
    "PlanService",
]
