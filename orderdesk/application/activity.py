from sqlalchemy.orm import Session

from orderdesk.domain.models import Order, OrderActivity
from orderdesk.application.schemas import OrderUpdate

SYSTEM_AUTHOR = "Sistem"

STATUS_CHANGE = "STATUS_CHANGE"
ASSIGN_CHANGE = "ASSIGN_CHANGE"
DETAILS_UPDATE = "DETAILS_UPDATE"
TRACKING_UPDATE = "TRACKING_UPDATE"
NOTE_ADDED = "NOTE_ADDED"
LABEL_UPDATE = "LABEL_UPDATE"
COMMENT_ADDED = "COMMENT_ADDED"
ORDER_CREATED = "ORDER_CREATED"
SYNC_REFRESH = "SYNC_REFRESH"
CARGO_UPDATE = "CARGO_UPDATE"

CUSTOMER_FIELDS = ("customer", "phone", "address", "city")


def log_activity(db: Session, order_id: int, author: str, action: str, details: str) -> OrderActivity:
    """Append an audit entry. The caller owns the commit."""
    entry = OrderActivity(order_id=order_id, author=author, action=action, details=details)
    db.add(entry)
    return entry


def status_changed_details(status: str) -> str:
    return f"Durum '{status}' olarak değiştirildi."


def _changed(old, new) -> bool:
    return new is not None and old != new


def diff_and_log(db: Session, order: Order, changes: OrderUpdate, author: str) -> list[str]:
    """Log one activity per tracked field group that the edit changes.

    ``changes`` holds only the fields the editor sent; absent fields are left
    alone and never logged. Returns the action kinds that were logged.
    """
    logged = []

    def log(action: str, details: str) -> None:
        log_activity(db, order.id, author, action, details)
        logged.append(action)

    if _changed(order.assigned_to, changes.assigned_to):
        log(ASSIGN_CHANGE, f"Sorumluluk alındı: {changes.assigned_to}")

    if _changed(order.status, changes.status):
        log(STATUS_CHANGE, status_changed_details(changes.status))

    if any(_changed(getattr(order, field), getattr(changes, field)) for field in CUSTOMER_FIELDS):
        log(DETAILS_UPDATE, "Müşteri ve teslimat bilgileri güncellendi.")

    if changes.tracking_number and _changed(order.tracking_number, changes.tracking_number):
        log(TRACKING_UPDATE, f"Kargo takip no girildi: {changes.tracking_number}")

    if _changed(order.print_notes, changes.print_notes):
        log(NOTE_ADDED, "Yeni işlem notu ekledi.")

    if changes.labels is not None and set(order.labels or []) != set(changes.labels):
        log(LABEL_UPDATE, "Etiketler güncellendi.")

    return logged


def completion_details(source_label: str, via_webhook: bool = False) -> str:
    suffix = f"{source_label} Webhook" if via_webhook else source_label
    return f"Müşteriye teslim edildi ({suffix})"
