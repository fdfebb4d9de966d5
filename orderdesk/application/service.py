from sqlalchemy.orm import Session
from datetime import datetime
from typing import Iterable, Optional

from orderdesk.domain.models import Order, OrderItem, Comment
from orderdesk.application import activity
from orderdesk.application.activity import log_activity, diff_and_log
from orderdesk.application.errors import OrderNotFound, InvalidStatus
from orderdesk.application.metadata import PLACEHOLDER_IMAGE
from orderdesk.application.schemas import ManualOrderCreate, OrderUpdate, CommentCreate
from orderdesk.application.status_mapper import SHIPPED, SOURCE_MANUAL, external_key, source_labels
from orderdesk.application.store import OrderStore

class OrderService:
    """Staff-facing order operations behind the board and detail panel."""

    def __init__(self, db: Session):
        self.db = db
        self.store = OrderStore(db)

    def list_orders(self, allowed_statuses: Optional[Iterable[str]] = None) -> list[Order]:
        return self.store.list_orders(allowed_statuses)

    def get(self, order_id: int) -> Order:
        order = self.store.get(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found")
        return order

    def _validated_status(self, status: str) -> str:
        resolved = self.store.resolve_status(status)
        if resolved is None:
            raise InvalidStatus(f"Unknown status '{status}'")
        return resolved

    def create_manual_order(self, data: ManualOrderCreate, author: str) -> Order:
        status = self._validated_status(data.status) if data.status else self.store.default_status()
        millis = int(datetime.now().timestamp() * 1000)
        while self.store.get_by_key(external_key(SOURCE_MANUAL, millis)) is not None:
            millis += 1
        order = Order(
            barcode=external_key(SOURCE_MANUAL, millis),
            status=status,
            labels=source_labels(SOURCE_MANUAL),
            customer=data.customer,
            phone=data.phone,
            email=data.email,
            address=data.address,
            city=data.city,
            note=data.note,
            total="0.00 ₺",
            has_notification=True,
            items=[
                OrderItem(**{**item.model_dump(), "image_src": item.image_src or PLACEHOLDER_IMAGE})
                for item in data.items
            ],
        )
        self.db.add(order)
        self.db.flush()
        log_activity(self.db, order.id, author, activity.ORDER_CREATED, "Manuel sipariş oluşturuldu.")
        self.db.commit()
        self.db.refresh(order)
        return order

    def update_status(self, order_id: int, status: str, author: str) -> Order:
        order = self.get(order_id)
        order.status = self._validated_status(status)
        order.has_notification = True
        # Whoever moves the card takes responsibility for it
        order.assigned_to = author
        log_activity(self.db, order.id, author, activity.STATUS_CHANGE, activity.status_changed_details(status))
        self.db.commit()
        self.db.refresh(order)
        return order

    def update_details(self, order_id: int, changes: OrderUpdate, author: str) -> Order:
        order = self.get(order_id)
        if changes.status is not None:
            self._validated_status(changes.status)
        diff_and_log(self.db, order, changes, author)

        for name, value in changes.model_dump(exclude_unset=True).items():
            if name == "status" and value is None:
                continue
            if name == "labels":
                value = list(dict.fromkeys(value or []))
            setattr(order, name, value)
        order.has_notification = True
        self.db.commit()
        self.db.refresh(order)
        return order

    def scan_barcode(self, code: str, author: str) -> Order:
        code = code.strip()
        order = self.store.get_by_key(code)
        if order is None and code.isdigit():
            order = self.store.get(int(code))
        if order is None:
            raise OrderNotFound(f"Barkod bulunamadı: {code}")
        return self.update_status(order.id, SHIPPED, author)

    def add_comment(self, order_id: int, data: CommentCreate, author: str) -> Comment:
        order = self.get(order_id)
        comment = Comment(
            order_id=order.id,
            author=author,
            message=data.message,
            attachments=[attachment.model_dump() for attachment in data.attachments],
        )
        self.db.add(comment)
        order.has_notification = True
        log_activity(self.db, order.id, author, activity.COMMENT_ADDED, "Yeni mesaj yazdı.")
        self.db.commit()
        self.db.refresh(comment)
        return comment

    def mark_read(self, order_id: int) -> Order:
        order = self.get(order_id)
        order.has_notification = False
        self.db.commit()
        self.db.refresh(order)
        return order

    def log_manual_activity(self, order_id: int, action: str, details: str, author: str) -> None:
        order = self.get(order_id)
        log_activity(self.db, order.id, author, action, details)
        self.db.commit()
