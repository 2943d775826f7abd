"""SQLAlchemy ORM models for ledger entities."""

from datetime import datetime, date
from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from parcel_ledger.utils.date_utils import utcnow


class Base(DeclarativeBase):
    pass


class CreditTokenModel(Base):
    """Persisted revolving credit token."""

    __tablename__ = "credit_tokens"
    __table_args__ = (
        CheckConstraint("used_amount_cents >= 0", name="ck_token_used_non_negative"),
        CheckConstraint(
            "used_amount_cents <= credit_limit_cents",
            name="ck_token_used_within_limit",
        ),
        Index(
            "uq_credit_tokens_active_owner",
            "owner_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    credit_limit_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    used_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_installments: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    interest_rate_bps: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    expires_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False)
    issued_at: Mapped[datetime] = mapped_column(
        DateTime(),
        nullable=False,
        default=utcnow,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    plans: Mapped[list["InstallmentPlanModel"]] = relationship(
        "InstallmentPlanModel",
        back_populates="token",
    )


class InstallmentPlanModel(Base):
    """Persisted installment plan record."""

    __tablename__ = "installment_plans"
    __table_args__ = (
        CheckConstraint("paid_cents <= total_cents", name="ck_plan_paid_within_total"),
        CheckConstraint(
            "paid_installments <= total_installments",
            name="ck_plan_installments_within_total",
        ),
    )

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    purchase_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    token_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("credit_tokens.id"),
        nullable=False,
        index=True,
    )
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    total_installments: Mapped[int] = mapped_column(Integer, nullable=False)
    installment_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    principal_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    interest_rate_bps: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    paid_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    paid_installments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    next_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(),
        nullable=False,
        default=utcnow,
    )

    token: Mapped["CreditTokenModel"] = relationship(
        "CreditTokenModel",
        back_populates="plans",
    )
    payments: Mapped[list["InstallmentPaymentModel"]] = relationship(
        "InstallmentPaymentModel",
        back_populates="plan",
        order_by="InstallmentPaymentModel.installment_number",
    )


class InstallmentPaymentModel(Base):
    """Persisted installment payment record within a plan."""

    __tablename__ = "installment_payments"
    __table_args__ = (
        UniqueConstraint("plan_id", "installment_number", name="uq_payment_plan_number"),
        Index("ix_installment_payments_status_due", "status", "due_date"),
    )

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    plan_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("installment_plans.id"),
        nullable=False,
        index=True,
    )
    installment_number: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    principal_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(),
        nullable=True,
    )
    external_charge_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(),
        nullable=False,
        default=utcnow,
    )

    plan: Mapped["InstallmentPlanModel"] = relationship(
        "InstallmentPlanModel",
        back_populates="payments",
    )


class LedgerEventModel(Base):
    """Persisted ledger event awaiting or after notification delivery."""

    __tablename__ = "ledger_events"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    entity_id: Mapped[str] = mapped_column(String(255), nullable=False)
    amount_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        index=True,
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_attempt_at: Mapped[datetime | None] = mapped_column(
        DateTime(),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(),
        nullable=False,
        default=utcnow,
    )
