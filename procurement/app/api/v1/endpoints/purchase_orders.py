from __future__ import annotations

from typing import NoReturn

from fastapi import APIRouter, Depends, Header, HTTPException, Response
from sqlalchemy.orm import Session

from procurement.app.api.deps import get_catalog, get_db
from procurement.app.schemas.purchase_order import (
    POCreate,
    POHeaderUpdate,
    POLineCreate,
    POLineRead,
    POLineUpdate,
    POStatusChange,
    POStatusHistoryRead,
    POStatusNote,
    PurchaseOrderDetail,
    PurchaseOrderRead,
)
from procurement.services import purchase_orders
from procurement.services.catalog import CatalogLookup
from procurement.services.errors import ProcurementError

router = APIRouter(prefix="/purchase-orders")


def _fail(db: Session, exc: ProcurementError) -> NoReturn:
    db.rollback()
    raise HTTPException(status_code=exc.status_code, detail=exc.to_detail())


@router.get("", response_model=list[PurchaseOrderRead])
def list_pos(
    status: str | None = None,
    supplier: str | None = None,
    db: Session = Depends(get_db),
):
    try:
        rows = purchase_orders.list_purchase_orders(db, status=status, supplier=supplier)
    except ProcurementError as exc:
        _fail(db, exc)
    return [PurchaseOrderRead.model_validate(po) for po in rows]


@router.get("/{po_id}", response_model=PurchaseOrderDetail)
def get_po(po_id: int, db: Session = Depends(get_db)):
    try:
        po = purchase_orders.get_purchase_order(db, po_id)
    except ProcurementError as exc:
        _fail(db, exc)
    return PurchaseOrderDetail.model_validate(po)


@router.post("", response_model=PurchaseOrderDetail, status_code=201)
def create_po(
    payload: POCreate,
    response: Response,
    db: Session = Depends(get_db),
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
):
    try:
        po, created = purchase_orders.create_purchase_order(
            db,
            supplier=payload.supplier,
            requestor=payload.requestor,
            cost_center=payload.cost_center,
            needed_by_date=payload.needed_by_date,
            payment_terms=payload.payment_terms,
            idempotency_key=idempotency_key,
        )
        db.commit()
    except ProcurementError as exc:
        _fail(db, exc)

    # replay of a known idempotency key
    if not created:
        response.status_code = 200
    return PurchaseOrderDetail.model_validate(po)


@router.patch("/{po_id}", response_model=PurchaseOrderDetail)
def update_po_header(po_id: int, payload: POHeaderUpdate, db: Session = Depends(get_db)):
    try:
        po = purchase_orders.update_header(db, po_id, payload.model_dump(exclude_unset=True))
        db.commit()
    except ProcurementError as exc:
        _fail(db, exc)
    return PurchaseOrderDetail.model_validate(po)


# ---------- Lines ----------
@router.post("/{po_id}/lines", response_model=POLineRead, status_code=201)
def add_po_line(
    po_id: int,
    payload: POLineCreate,
    db: Session = Depends(get_db),
    catalog: CatalogLookup = Depends(get_catalog),
):
    try:
        line = purchase_orders.add_line_item(
            db,
            po_id,
            catalog_item_id=payload.catalog_item_id,
            quantity=payload.quantity,
            catalog=catalog,
        )
        db.commit()
    except ProcurementError as exc:
        _fail(db, exc)
    return POLineRead.model_validate(line)


@router.patch("/{po_id}/lines/{line_id}", response_model=POLineRead)
def update_po_line(po_id: int, line_id: int, payload: POLineUpdate, db: Session = Depends(get_db)):
    try:
        line = purchase_orders.update_line_item_quantity(db, po_id, line_id, quantity=payload.quantity)
        db.commit()
    except ProcurementError as exc:
        _fail(db, exc)
    return POLineRead.model_validate(line)


@router.delete("/{po_id}/lines/{line_id}")
def delete_po_line(po_id: int, line_id: int, db: Session = Depends(get_db)):
    try:
        purchase_orders.remove_line_item(db, po_id, line_id)
        db.commit()
    except ProcurementError as exc:
        _fail(db, exc)
    return {"success": True}


# ---------- Status ----------
@router.post("/{po_id}/submit", response_model=PurchaseOrderDetail)
def submit_po(po_id: int, db: Session = Depends(get_db)):
    try:
        po = purchase_orders.submit_purchase_order(db, po_id)
        db.commit()
    except ProcurementError as exc:
        _fail(db, exc)
    return PurchaseOrderDetail.model_validate(po)


@router.post("/{po_id}/status", response_model=PurchaseOrderDetail)
def change_po_status(po_id: int, payload: POStatusChange, db: Session = Depends(get_db)):
    try:
        po = purchase_orders.transition_status(db, po_id, status=payload.status, note=payload.note)
        db.commit()
    except ProcurementError as exc:
        _fail(db, exc)
    return PurchaseOrderDetail.model_validate(po)


@router.patch("/{po_id}/history/{status}/note", response_model=POStatusHistoryRead)
def attach_po_status_note(po_id: int, status: str, payload: POStatusNote, db: Session = Depends(get_db)):
    try:
        entry = purchase_orders.attach_status_note(db, po_id, status=status, note=payload.note)
        db.commit()
    except ProcurementError as exc:
        _fail(db, exc)
    return POStatusHistoryRead.model_validate(entry)
