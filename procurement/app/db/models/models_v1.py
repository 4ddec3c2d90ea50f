from __future__ import annotations

from datetime import datetime, date, timezone
from decimal import Decimal

from sqlalchemy import (
    String,
    Integer,
    BigInteger,
    DateTime,
    Date,
    Boolean,
    ForeignKey,
    Numeric,
    Text,
    Enum,
    UniqueConstraint,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from procurement.app.db.base import Base
from procurement.app.db.models.core_types import POStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- CATALOG ----------
class CatalogItem(Base):
    __tablename__ = "catalog_items"
    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False)
    supplier: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    manufacturer: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    model: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    price_usd: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    lead_time_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    in_stock: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint("price_usd >= 0", name="ck_catalog_price_nonneg"),
        CheckConstraint("lead_time_days >= 0", name="ck_catalog_lead_time_nonneg"),
    )


# ---------- PROCUREMENT ----------
class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    po_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    # Fixed at creation; only replaceable while the ledger is empty.
    supplier: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    supplier_locked: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    requestor: Mapped[str] = mapped_column(String(255), nullable=False)
    cost_center: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    needed_by_date: Mapped[date | None] = mapped_column(Date)
    payment_terms: Mapped[str] = mapped_column(String(50), default="Net 30", nullable=False)

    current_status: Mapped[POStatus] = mapped_column(
        Enum(POStatus, name="po_status", values_callable=lambda e: [m.value for m in e]),
        default=POStatus.draft,
        nullable=False,
        index=True,
    )
    # Derived from the ledger, never written directly by callers.
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"), nullable=False)

    idempotency_key: Mapped[str | None] = mapped_column(String(64), unique=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    lines: Mapped[list["POLineItem"]] = relationship(
        back_populates="po",
        cascade="all, delete-orphan",
        order_by="POLineItem.id",
    )
    history: Mapped[list["POStatusHistory"]] = relationship(
        back_populates="po",
        cascade="all, delete-orphan",
        order_by=lambda: [POStatusHistory.transitioned_at, POStatusHistory.id],
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_po_total_nonneg"),
    )


class POLineItem(Base):
    __tablename__ = "po_line_items"
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    po_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    catalog_item_id: Mapped[str] = mapped_column(String(100), nullable=False)

    # Snapshot taken from the catalog when the line was added.
    supplier: Mapped[str] = mapped_column(String(255), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    po: Mapped[PurchaseOrder] = relationship(back_populates="lines")

    __table_args__ = (
        UniqueConstraint("po_id", "catalog_item_id", name="uq_po_line_item"),
        CheckConstraint("quantity >= 1 AND quantity <= 10000", name="ck_po_line_qty_1_10000"),
        CheckConstraint("unit_price >= 0", name="ck_po_line_unit_price_nonneg"),
    )


# ---------- AUDIT ----------
class POStatusHistory(Base):
    __tablename__ = "po_status_history"
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    po_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[POStatus] = mapped_column(
        Enum(POStatus, name="po_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    transitioned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    note: Mapped[str | None] = mapped_column(String(1000))

    po: Mapped[PurchaseOrder] = relationship(back_populates="history")

    __table_args__ = (Index("ix_po_status_history_po_time", "po_id", "transitioned_at"),)
