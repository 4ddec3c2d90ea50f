"""
Status transition engine.

    Draft -> Submitted -> Approved -> Fulfilled
                      |
                      +-> Rejected

Rejected and Fulfilled are terminal. Every accepted transition appends a
history entry; entries are never rewritten except through the legacy
note-attachment path in `attach_note`.
"""

from __future__ import annotations

from datetime import datetime

from procurement.app.db.models.core_types import POStatus
from procurement.app.db.models.models_v1 import PurchaseOrder, POStatusHistory, utcnow
from procurement.services import errors

ALLOWED_TRANSITIONS: dict[POStatus, frozenset[POStatus]] = {
    POStatus.draft: frozenset({POStatus.submitted}),
    POStatus.submitted: frozenset({POStatus.approved, POStatus.rejected}),
    POStatus.approved: frozenset({POStatus.fulfilled}),
    POStatus.rejected: frozenset(),
    POStatus.fulfilled: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)

MAX_NOTE_LENGTH = 1000


def parse_status(value) -> POStatus:
    if isinstance(value, POStatus):
        return value
    try:
        return POStatus(value)
    except ValueError:
        valid = ", ".join(s.value for s in POStatus)
        raise errors.ValidationError(f"status must be one of: {valid}") from None


def normalize_note(note) -> str | None:
    if note is None:
        return None
    if not isinstance(note, str) or len(note) > MAX_NOTE_LENGTH:
        raise errors.ValidationError(f"note must be a string (max {MAX_NOTE_LENGTH} chars)")
    note = note.strip()
    return note or None


def is_allowed(current: POStatus, target: POStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def check_transition(po: PurchaseOrder, target: POStatus) -> None:
    """Raise unless `po` may move to `target` right now. Mutates nothing."""
    current = po.current_status
    if not is_allowed(current, target):
        raise errors.InvalidTransition(
            f'Invalid status transition from "{current.value}" to "{target.value}"',
            current_status=current.value,
            requested_status=target.value,
        )
    if target == POStatus.submitted and not po.lines:
        raise errors.EmptyOrder("Cannot submit PO with no line items")


def record(po: PurchaseOrder, status: POStatus, note: str | None = None, at: datetime | None = None) -> POStatusHistory:
    entry = POStatusHistory(status=status, transitioned_at=at or utcnow(), note=note)
    po.history.append(entry)
    return entry


def apply_transition(po: PurchaseOrder, target: POStatus, note: str | None = None) -> POStatusHistory:
    check_transition(po, target)
    po.current_status = target
    return record(po, target, note)


def attach_note(po: PurchaseOrder, status: POStatus, note: str) -> POStatusHistory:
    """
    Legacy path: set the note on the latest history entry for `status`.

    Calling it again for the same status overwrites the previous note.
    """
    matching = [entry for entry in po.history if entry.status == status]
    if not matching:
        raise errors.NotFound(f'PO has no "{status.value}" status entry')
    latest = matching[-1]
    latest.note = note
    return latest
