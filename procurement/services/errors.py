"""
Error kinds raised by the procurement core.

Every business-rule violation is raised before any mutation is applied, so a
caller that catches one of these can roll back knowing nothing was written.
"""

from __future__ import annotations


class ProcurementError(Exception):
    kind = "Internal"
    status_code = 500

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_detail(self) -> dict:
        detail = {"error": self.kind, "message": self.message}
        detail.update(self.context)
        return detail


class ValidationError(ProcurementError):
    kind = "ValidationError"
    status_code = 400


class NotFound(ProcurementError):
    kind = "NotFound"
    status_code = 404


class SupplierMismatch(ProcurementError):
    kind = "SupplierMismatch"
    status_code = 409

    def __init__(self, po_supplier: str, item_supplier: str):
        super().__init__(
            f'PO is locked to "{po_supplier}" but item belongs to "{item_supplier}"',
            po_supplier=po_supplier,
            item_supplier=item_supplier,
        )


class QuantityExceeded(ProcurementError):
    kind = "QuantityExceeded"
    status_code = 400


class InvalidState(ProcurementError):
    kind = "InvalidState"
    status_code = 422


class InvalidTransition(ProcurementError):
    kind = "InvalidTransition"
    status_code = 422


class EmptyOrder(ProcurementError):
    kind = "EmptyOrder"
    status_code = 422


class Internal(ProcurementError):
    pass
