from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, StrictInt

from procurement.app.db.models.core_types import POStatus


# ---------- Write ----------
# Field rules (lengths, date format, quantity bounds) are enforced by the
# service layer so they hold for every caller, not only HTTP.
class POCreate(BaseModel):
    supplier: str | None = None
    requestor: str | None = None
    cost_center: str | None = Field(default=None, alias="costCenter")
    needed_by_date: str | None = Field(default=None, alias="neededByDate")
    payment_terms: str | None = Field(default=None, alias="paymentTerms")

    class Config:
        populate_by_name = True


class POHeaderUpdate(BaseModel):
    supplier: str | None = None
    requestor: str | None = None
    cost_center: str | None = Field(default=None, alias="costCenter")
    needed_by_date: str | None = Field(default=None, alias="neededByDate")
    payment_terms: str | None = Field(default=None, alias="paymentTerms")

    class Config:
        populate_by_name = True


class POLineCreate(BaseModel):
    catalog_item_id: str | None = Field(default=None, alias="catalogItemId")
    quantity: StrictInt

    class Config:
        populate_by_name = True


class POLineUpdate(BaseModel):
    quantity: StrictInt


class POStatusChange(BaseModel):
    status: str
    note: str | None = None


class POStatusNote(BaseModel):
    note: str


# ---------- Read ----------
class POLineRead(BaseModel):
    id: int
    po_id: int
    catalog_item_id: str
    supplier: str
    quantity: int
    unit_price: Decimal
    created_at: datetime

    class Config:
        from_attributes = True


class POStatusHistoryRead(BaseModel):
    id: int
    status: POStatus
    transitioned_at: datetime
    note: str | None

    class Config:
        from_attributes = True


class PurchaseOrderRead(BaseModel):
    id: int
    po_number: str
    supplier: str
    supplier_locked: bool
    requestor: str
    cost_center: str
    needed_by_date: date | None
    payment_terms: str
    current_status: POStatus
    total_amount: Decimal  # READ ONLY, derived from the lines
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PurchaseOrderDetail(PurchaseOrderRead):
    lines: list[POLineRead]
    history: list[POStatusHistoryRead]
