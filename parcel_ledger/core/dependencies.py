"""Dependency injection for FastAPI."""

from typing import Annotated

from fastapi import Depends

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
from parcel_ledger.domain.interfaces import NotificationClient, UnitOfWorkFactory
from parcel_ledger.infrastructure.clients import HttpNotificationClient
from parcel_ledger.infrastructure.database import db_manager
from parcel_ledger.infrastructure.unit_of_work import sqlalchemy_uow_factory


# Persistence dependencies
def get_uow_factory() -> UnitOfWorkFactory:
    """Get a UnitOfWork factory bound to the application's session factory."""
    return sqlalchemy_uow_factory(db_manager.sessionmaker)


# External client dependencies
def get_notification_client() -> NotificationClient:
    """Get a NotificationClient instance."""
    return HttpNotificationClient()


# Service dependencies
def get_event_dispatcher(
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    notification_client: Annotated[NotificationClient, Depends(get_notification_client)],
) -> EventDispatcher:
    """Get an EventDispatcher instance."""
    return EventDispatcher(uow_factory, notification_client)


def get_token_service(
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    dispatcher: Annotated[EventDispatcher, Depends(get_event_dispatcher)],
) -> CreditTokenService:
    """Get a CreditTokenService instance."""
    return CreditTokenService(uow_factory, dispatcher=dispatcher)


def get_plan_generator(
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    dispatcher: Annotated[EventDispatcher, Depends(get_event_dispatcher)],
) -> InstallmentPlanGenerator:
    """Get an InstallmentPlanGenerator instance."""
    return InstallmentPlanGenerator(uow_factory, dispatcher=dispatcher)


def get_purchase_service(
    token_service: Annotated[CreditTokenService, Depends(get_token_service)],
    plan_generator: Annotated[InstallmentPlanGenerator, Depends(get_plan_generator)],
) -> PurchaseService:
    """Get a PurchaseService instance with all dependencies."""
    return PurchaseService(token_service, plan_generator)


def get_payment_reconciler(
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    dispatcher: Annotated[EventDispatcher, Depends(get_event_dispatcher)],
) -> PaymentReconciler:
    """Get a PaymentReconciler instance."""
    return PaymentReconciler(uow_factory, dispatcher=dispatcher)


def get_overdue_scanner(
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    token_service: Annotated[CreditTokenService, Depends(get_token_service)],
    dispatcher: Annotated[EventDispatcher, Depends(get_event_dispatcher)],
) -> OverdueScanner:
    """Get an OverdueScanner instance."""
    return OverdueScanner(uow_factory, token_service, dispatcher=dispatcher)


def get_reschedule_service(
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
) -> RescheduleService:
    """Get a RescheduleService instance."""
    return RescheduleService(uow_factory)


def get_plan_service(
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
) -> PlanService:
    """Get a PlanService instance."""
    return PlanService(uow_factory)
