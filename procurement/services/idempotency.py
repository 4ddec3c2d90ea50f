"""
Idempotent PO creation.

Fast path: a PO already carrying the key is returned as is. Two concurrent
creates can both miss it; the unique index on `idempotency_key` rejects the
second insert and that request returns the winner's row instead.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from procurement.app.db.models.models_v1 import PurchaseOrder
from procurement.services import errors

logger = logging.getLogger(__name__)


def normalize_key(raw: str | None) -> str | None:
    if raw is None or not raw.strip():
        return None
    try:
        return str(uuid.UUID(raw.strip()))
    except ValueError:
        raise errors.ValidationError("Idempotency key must be a valid UUID") from None


def find_existing(db: Session, key: str) -> PurchaseOrder | None:
    return db.execute(
        select(PurchaseOrder).where(PurchaseOrder.idempotency_key == key)
    ).scalar_one_or_none()


def insert_once(db: Session, po: PurchaseOrder) -> tuple[PurchaseOrder, bool]:
    """
    Flush `po`. Returns (po, True) on insert, or (existing, False) when
    another transaction committed the same key first.

    Losing the race rolls back the session's transaction; anything else
    pending in `db` is discarded with it.
    """
    db.add(po)
    if po.idempotency_key is None:
        db.flush()
        return po, True

    key = po.idempotency_key
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        existing = find_existing(db, key)
        if existing is None:
            raise
        logger.info("po_idempotency_race_resolved po_id=%s key=%s", existing.id, key)
        return existing, False
    return po, True
