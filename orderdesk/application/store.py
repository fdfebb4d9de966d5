from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from typing import Iterable, Optional

from orderdesk.domain.models import Order, OrderActivity, Comment, StatusColumn, SystemSetting
from orderdesk.application.status_mapper import DEFAULT_STATUS_COLUMNS

# SystemSetting keys
WC_URL = "wc_url"
WC_KEY = "wc_key"
WC_SECRET = "wc_secret"
ETSY_SHOP_ID = "etsy_shop_id"
ETSY_API_KEY = "etsy_api_key"
ETSY_ACCESS_TOKEN = "etsy_access_token"
ETSY_REFRESH_TOKEN = "etsy_refresh_token"
LAST_WEBHOOK_PAYLOAD = "last_webhook_payload"
LAST_CARGO_WEBHOOK = "last_cargo_webhook"
REFRESH_LABEL_POLICY = "refresh_label_policy"

class OrderStore:
    """Persistence gateway for orders and their owned records.

    Every reconciliation and every staff operation re-reads through here, so
    nothing is cached between requests.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, order_id: int) -> Optional[Order]:
        return self.db.get(Order, order_id)

    def get_by_key(self, key: str) -> Optional[Order]:
        return self.db.execute(select(Order).where(Order.barcode == key)).scalar_one_or_none()

    def list_orders(self, allowed_statuses: Optional[Iterable[str]] = None) -> list[Order]:
        stmt = (
            select(Order)
            .options(
                selectinload(Order.items),
                selectinload(Order.comments),
                selectinload(Order.activities),
            )
            .order_by(Order.updated_at.desc(), Order.id.desc())
        )
        if allowed_statuses:
            stmt = stmt.where(Order.status.in_(list(allowed_statuses)))
        return list(self.db.execute(stmt).scalars().all())

    def count_history(self, order_id: int) -> tuple[int, int]:
        activities = self.db.execute(
            select(func.count()).select_from(OrderActivity).where(OrderActivity.order_id == order_id)
        ).scalar_one()
        comments = self.db.execute(
            select(func.count()).select_from(Comment).where(Comment.order_id == order_id)
        ).scalar_one()
        return activities, comments

    # --- status columns ---

    def status_columns(self) -> list[StatusColumn]:
        columns = list(self.db.execute(select(StatusColumn).order_by(StatusColumn.position)).scalars().all())
        if columns:
            return columns
        for position, (status_id, title, color) in enumerate(DEFAULT_STATUS_COLUMNS):
            self.db.add(StatusColumn(id=status_id, title=title, color=color, position=position))
        self.db.commit()
        return list(self.db.execute(select(StatusColumn).order_by(StatusColumn.position)).scalars().all())

    def resolve_status(self, status: str) -> Optional[str]:
        """Return the stored form of a status, accepting configured ids or legacy titles."""
        for column in self.status_columns():
            if status == column.id or status == column.title:
                return status
        return None

    def default_status(self) -> str:
        return self.status_columns()[0].id

    # --- system settings ---

    def get_setting(self, key: str) -> Optional[str]:
        setting = self.db.get(SystemSetting, key)
        return setting.value if setting else None

    def get_settings(self) -> dict[str, str]:
        rows = self.db.execute(select(SystemSetting)).scalars().all()
        return {row.key: row.value for row in rows}

    def set_setting(self, key: str, value: str, commit: bool = True) -> None:
        setting = self.db.get(SystemSetting, key)
        if setting:
            setting.value = value
        else:
            self.db.add(SystemSetting(key=key, value=value))
        if commit:
            try:
                self.db.commit()
            except IntegrityError:
                # Another writer inserted the key between our read and commit
                self.db.rollback()
                self.db.get(SystemSetting, key).value = value
                self.db.commit()
