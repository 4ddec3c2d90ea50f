"""
Purchase order aggregate.

All header, ledger and status mutations of a PO go through this module. Each
mutating call works inside the caller's transaction: it locks the PO row
(SELECT ... FOR UPDATE), re-reads the status, validates everything, then
applies the change and re-derives the total. Nothing is committed here; the
caller commits or rolls back. The one exception is losing an idempotency-key
race on create: the failed insert is rolled back, which resets the session,
and the winner's PO is returned.

Rules:
- a PO sources from exactly one supplier while it has line items
- at most one line per catalog item; re-adding merges quantities
- total_amount == SUM(quantity * unit_price), recomputed on every ledger change
- header and lines are frozen once the PO leaves Draft
"""

from __future__ import annotations

import logging
import re
import secrets
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from procurement.app.db.models.core_types import POStatus
from procurement.app.db.models.models_v1 import (
    PurchaseOrder,
    POLineItem,
    POStatusHistory,
    utcnow,
)
from procurement.services import errors, idempotency, ledger, status_engine
from procurement.services.catalog import CatalogLookup

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_TERMS = "Net 30"

SUPPLIER_MAX_LEN = 255
REQUESTOR_MAX_LEN = 255
COST_CENTER_MAX_LEN = 100
PAYMENT_TERMS_MAX_LEN = 50
CATALOG_ITEM_ID_MAX_LEN = 100

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

HEADER_FIELDS = ("supplier", "requestor", "cost_center", "needed_by_date", "payment_terms")


# ---------- Validation helpers ----------
def _required_text(value, field: str, max_len: int) -> str:
    if not isinstance(value, str) or not value.strip() or len(value.strip()) > max_len:
        raise errors.ValidationError(f"{field} is required (max {max_len} chars)")
    return value.strip()


def _optional_text(value, field: str, max_len: int, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or len(value.strip()) > max_len:
        raise errors.ValidationError(f"{field} must be <= {max_len} chars")
    return value.strip() or default


def _needed_by(value) -> date | None:
    if value is None:
        return None
    if isinstance(value, date):
        return value
    if isinstance(value, str) and DATE_RE.match(value):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise errors.ValidationError("neededByDate must be a calendar date in YYYY-MM-DD format")


def _catalog_item_id(value) -> str:
    return _required_text(value, "catalogItemId", CATALOG_ITEM_ID_MAX_LEN)


def _new_po_number() -> str:
    return f"PO-{utcnow():%Y%m%d}-{secrets.token_hex(4).upper()}"


# ---------- Loading ----------
def get_purchase_order(db: Session, po_id: int) -> PurchaseOrder:
    po = db.get(PurchaseOrder, po_id)
    if not po:
        raise errors.NotFound("PO not found", po_id=po_id)
    return po


def list_purchase_orders(
    db: Session,
    *,
    status: str | None = None,
    supplier: str | None = None,
) -> list[PurchaseOrder]:
    stmt = select(PurchaseOrder).order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc())

    if status is not None:
        stmt = stmt.where(PurchaseOrder.current_status == status_engine.parse_status(status))

    if supplier is not None:
        if len(supplier) > SUPPLIER_MAX_LEN:
            raise errors.ValidationError("supplier filter too long")
        stmt = stmt.where(PurchaseOrder.supplier == supplier)

    return list(db.execute(stmt).scalars().all())


def _lock_purchase_order(db: Session, po_id: int) -> PurchaseOrder:
    # populate_existing: re-read status even if the row is already in the session
    po = (
        db.execute(
            select(PurchaseOrder)
            .where(PurchaseOrder.id == po_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        .scalars()
        .first()
    )
    if not po:
        raise errors.NotFound("PO not found", po_id=po_id)
    return po


def _require_draft(po: PurchaseOrder, action: str) -> None:
    if po.current_status != POStatus.draft:
        raise errors.InvalidState(
            f"Can only {action} Draft POs (current status: {po.current_status.value})",
            current_status=po.current_status.value,
        )


def _find_line(po: PurchaseOrder, line_id: int) -> POLineItem:
    for line in po.lines:
        if line.id == line_id:
            return line
    raise errors.NotFound("Line item not found", po_id=po.id, line_id=line_id)


def _supplier_locked(po: PurchaseOrder) -> bool:
    return bool(po.lines) or po.supplier_locked


# ---------- Header ----------
def create_purchase_order(
    db: Session,
    *,
    supplier,
    requestor,
    cost_center=None,
    needed_by_date=None,
    payment_terms=None,
    idempotency_key: str | None = None,
) -> tuple[PurchaseOrder, bool]:
    """
    Create a Draft PO. Returns (po, created).

    With an idempotency key that is already known, the existing PO is
    returned untouched and `created` is False.
    """
    supplier = _required_text(supplier, "supplier", SUPPLIER_MAX_LEN)
    requestor = _required_text(requestor, "requestor", REQUESTOR_MAX_LEN)
    cost_center = _optional_text(cost_center, "costCenter", COST_CENTER_MAX_LEN, "")
    needed_by = _needed_by(needed_by_date)
    payment_terms = _optional_text(payment_terms, "paymentTerms", PAYMENT_TERMS_MAX_LEN, DEFAULT_PAYMENT_TERMS)
    key = idempotency.normalize_key(idempotency_key)

    if key is not None:
        existing = idempotency.find_existing(db, key)
        if existing:
            logger.info("po_idempotent_replay po_id=%s key=%s", existing.id, key)
            return existing, False

    now = utcnow()
    po = PurchaseOrder(
        po_number=_new_po_number(),
        supplier=supplier,
        supplier_locked=True,
        requestor=requestor,
        cost_center=cost_center,
        needed_by_date=needed_by,
        payment_terms=payment_terms,
        current_status=POStatus.draft,
        total_amount=ledger.compute_total([]),
        idempotency_key=key,
        created_at=now,
        updated_at=now,
    )
    status_engine.record(po, POStatus.draft, at=now)

    po, created = idempotency.insert_once(db, po)
    if created:
        logger.info(
            "po_created po_id=%s po_number=%s supplier=%s",
            po.id,
            po.po_number,
            po.supplier,
        )
    return po, created


def update_header(db: Session, po_id: int, fields: dict) -> PurchaseOrder:
    """Apply only the header fields present in `fields`. Draft only."""
    unknown = set(fields) - set(HEADER_FIELDS)
    if unknown:
        raise errors.ValidationError(f"Unknown header fields: {', '.join(sorted(unknown))}")
    if not fields:
        raise errors.ValidationError("No fields to update")

    updates = {}
    if "supplier" in fields:
        updates["supplier"] = _required_text(fields["supplier"], "supplier", SUPPLIER_MAX_LEN)
    if "requestor" in fields:
        updates["requestor"] = _required_text(fields["requestor"], "requestor", REQUESTOR_MAX_LEN)
    if "cost_center" in fields:
        updates["cost_center"] = _optional_text(fields["cost_center"], "costCenter", COST_CENTER_MAX_LEN, "")
    if "needed_by_date" in fields:
        updates["needed_by_date"] = _needed_by(fields["needed_by_date"])
    if "payment_terms" in fields:
        updates["payment_terms"] = _optional_text(
            fields["payment_terms"], "paymentTerms", PAYMENT_TERMS_MAX_LEN, DEFAULT_PAYMENT_TERMS
        )

    po = _lock_purchase_order(db, po_id)
    _require_draft(po, "update")

    if "supplier" in updates and updates["supplier"] != po.supplier and po.lines:
        raise errors.InvalidState(
            f'Supplier is locked to "{po.supplier}" while the PO has line items',
            current_supplier=po.supplier,
        )

    for name, value in updates.items():
        setattr(po, name, value)
    if "supplier" in updates:
        po.supplier_locked = True

    db.flush()
    logger.info("po_header_updated po_id=%s fields=%s", po.id, ",".join(sorted(updates)))
    return po


# ---------- Ledger ----------
def add_line_item(
    db: Session,
    po_id: int,
    *,
    catalog_item_id,
    quantity,
    catalog: CatalogLookup,
) -> POLineItem:
    catalog_item_id = _catalog_item_id(catalog_item_id)
    quantity = ledger.validate_quantity(quantity)

    # fail fast before calling the catalog
    _require_draft(get_purchase_order(db, po_id), "add lines to")

    item = catalog.resolve(catalog_item_id)

    po = _lock_purchase_order(db, po_id)
    _require_draft(po, "add lines to")

    if _supplier_locked(po) and item.supplier != po.supplier:
        raise errors.SupplierMismatch(po.supplier, item.supplier)

    line = ledger.find_line(po.lines, catalog_item_id)
    merged = line is not None
    if merged:
        line.quantity = ledger.merged_quantity(line.quantity, quantity)
    else:
        if not _supplier_locked(po):
            po.supplier = item.supplier
            po.supplier_locked = True
        line = POLineItem(
            catalog_item_id=catalog_item_id,
            supplier=item.supplier,
            unit_price=ledger.to_cents(item.unit_price),
            quantity=quantity,
            created_at=utcnow(),
        )
        po.lines.append(line)

    po.total_amount = ledger.compute_total(po.lines)
    db.flush()

    logger.info(
        "po_line_added po_id=%s line_id=%s item=%s quantity=%s merged=%s total=%s",
        po.id,
        line.id,
        catalog_item_id,
        line.quantity,
        merged,
        po.total_amount,
    )
    return line


def update_line_item_quantity(db: Session, po_id: int, line_id: int, *, quantity) -> POLineItem:
    quantity = ledger.validate_quantity(quantity)

    po = _lock_purchase_order(db, po_id)
    _require_draft(po, "modify")
    line = _find_line(po, line_id)

    line.quantity = quantity
    po.total_amount = ledger.compute_total(po.lines)
    db.flush()

    logger.info(
        "po_line_updated po_id=%s line_id=%s quantity=%s total=%s",
        po.id,
        line.id,
        quantity,
        po.total_amount,
    )
    return line


def remove_line_item(db: Session, po_id: int, line_id: int) -> None:
    po = _lock_purchase_order(db, po_id)
    _require_draft(po, "modify")
    line = _find_line(po, line_id)

    po.lines.remove(line)
    if not po.lines:
        po.supplier_locked = False
        logger.info("po_supplier_lock_released po_id=%s supplier=%s", po.id, po.supplier)

    po.total_amount = ledger.compute_total(po.lines)
    db.flush()

    logger.info("po_line_removed po_id=%s line_id=%s total=%s", po.id, line_id, po.total_amount)


# ---------- Status ----------
def transition_status(db: Session, po_id: int, *, status, note=None) -> PurchaseOrder:
    target = status_engine.parse_status(status)
    note = status_engine.normalize_note(note)

    po = _lock_purchase_order(db, po_id)
    previous = po.current_status
    status_engine.apply_transition(po, target, note)
    db.flush()

    logger.info(
        "po_status_changed po_id=%s from=%s to=%s",
        po.id,
        previous.value,
        target.value,
    )
    return po


def submit_purchase_order(db: Session, po_id: int, *, note=None) -> PurchaseOrder:
    return transition_status(db, po_id, status=POStatus.submitted, note=note)


def attach_status_note(db: Session, po_id: int, *, status, note) -> POStatusHistory:
    """
    Legacy: attach `note` to the latest history entry for `status`.

    Prefer passing the note to `transition_status`.
    """
    target = status_engine.parse_status(status)
    note = status_engine.normalize_note(note)
    if note is None:
        raise errors.ValidationError("note is required")

    po = _lock_purchase_order(db, po_id)
    entry = status_engine.attach_note(po, target, note)
    db.flush()

    logger.info("po_status_note_attached po_id=%s status=%s", po.id, target.value)
    return entry
