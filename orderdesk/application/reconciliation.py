"""Ingestion of one marketplace order into the order store.

Two delivery paths feed this engine:

* ``WEBHOOK`` - push deliveries. An order whose external key already exists
  is a redelivery and is left untouched, so retries never clobber data.
* ``PULL`` - admin/scheduled reconciliation. An existing order is refreshed
  from the latest payload in place: scalar fields are overwritten, line
  items are replaced, and the row keeps its id so the activity log and the
  comment thread stay attached. The refresh runs in a single transaction;
  if any step fails the previous state is kept as a whole.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from orderdesk.core_settings import Settings, get_settings
from orderdesk.core.logging_config import get_logger
from orderdesk.domain.models import Order, OrderItem, utcnow
from orderdesk.application import activity
from orderdesk.application.activity import log_activity
from orderdesk.application.aliases import CARGO_BARCODE_KEY, CARGO_TRACKING_KEY
from orderdesk.application.locale import compose_city
from orderdesk.application.metadata import normalize_line_item, normalize_etsy_transaction
from orderdesk.application.schemas import (
    WooOrderPayload,
    EtsyReceiptPayload,
    NormalizedItem,
    parse_marketplace_payload,
)
from orderdesk.application.status_mapper import (
    COMPLETED,
    SOURCE_WOOCOMMERCE,
    SOURCE_ETSY,
    SOURCE_LABELS,
    external_key,
    map_external_status,
    source_labels,
)
from orderdesk.application.store import OrderStore, REFRESH_LABEL_POLICY

logger = get_logger(__name__)

WEBHOOK = "webhook"
PULL = "pull"

LABEL_POLICY_REPLACE = "replace"
LABEL_POLICY_PRESERVE = "preserve"

GUEST_CUSTOMER = "Misafir"
UNKNOWN_PAYMENT = "Bilinmiyor"
DEFAULT_CURRENCY = "₺"

Payload = Union[WooOrderPayload, EtsyReceiptPayload]


@dataclass
class ReconcileResult:
    created: bool = False
    refreshed: bool = False
    skipped: bool = False
    order_id: Optional[int] = None
    logs: list = field(default_factory=list)


@dataclass
class OrderDraft:
    """Everything derived from one payload, before it touches the store."""
    source: str
    key: str
    external_id: int
    fields: dict
    status: str
    status_labels: tuple
    items: list


def _naive_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return utcnow()
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_epoch(seconds: Optional[int]) -> datetime:
    if seconds is None:
        return utcnow()
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)


def _joined(*parts: Optional[str], sep: str = " ") -> Optional[str]:
    text = sep.join(part.strip() for part in parts if part and part.strip())
    return text or None


def _order_meta(payload: WooOrderPayload, key: str) -> Optional[str]:
    for entry in payload.meta_data:
        if entry.key == key and entry.value not in (None, ""):
            return str(entry.value)
    return None


def draft_from_woocommerce(payload: WooOrderPayload, placeholder: str) -> OrderDraft:
    billing = payload.billing
    mapping = map_external_status(payload.status)
    return OrderDraft(
        source=SOURCE_WOOCOMMERCE,
        key=external_key(SOURCE_WOOCOMMERCE, payload.id),
        external_id=payload.id,
        fields={
            "customer": _joined(billing.first_name, billing.last_name) or GUEST_CUSTOMER,
            "phone": billing.phone or None,
            "email": billing.email or None,
            "address": _joined(billing.address_1, billing.address_2),
            "city": compose_city(billing.city, billing.state),
            "total": f"{payload.total or '0.00'} {payload.currency_symbol or DEFAULT_CURRENCY}",
            "note": payload.customer_note or None,
            "payment_method": payload.payment_method_title or UNKNOWN_PAYMENT,
            "date": _naive_utc(payload.date_created),
            "updated_at": _naive_utc(payload.date_modified),
            "cargo_barcode": _order_meta(payload, CARGO_BARCODE_KEY),
            "cargo_tracking_number": _order_meta(payload, CARGO_TRACKING_KEY),
        },
        status=mapping.status,
        status_labels=mapping.labels,
        items=[normalize_line_item(item, placeholder) for item in payload.line_items],
    )


def draft_from_etsy(payload: EtsyReceiptPayload, placeholder: str) -> OrderDraft:
    mapping = map_external_status(payload.status)
    money = payload.grandtotal
    total = f"{money.amount / (money.divisor or 1):.2f} {money.currency_code}".strip() if money else "0.00"
    return OrderDraft(
        source=SOURCE_ETSY,
        key=external_key(SOURCE_ETSY, payload.receipt_id),
        external_id=payload.receipt_id,
        fields={
            "customer": (payload.name or "").strip() or (payload.recipient_name or "").strip() or GUEST_CUSTOMER,
            "email": payload.buyer_email or None,
            "address": _joined(payload.first_line, payload.second_line),
            "city": _joined(payload.city, _joined(payload.state, payload.zip), sep=" / "),
            "total": total,
            "note": payload.message_from_buyer or None,
            "payment_method": "Etsy Payments",
            "date": _from_epoch(payload.create_timestamp),
            "updated_at": _from_epoch(payload.update_timestamp),
        },
        status=mapping.status,
        status_labels=mapping.labels,
        items=[normalize_etsy_transaction(tx, placeholder) for tx in payload.transactions],
    )


def _dedupe(labels) -> list:
    return list(dict.fromkeys(labels))


def _field_of(loc: tuple, source: str) -> str:
    # Union errors are located under the discriminator tag first
    if len(loc) > 1 and loc[0] == source:
        loc = loc[1:]
    return str(loc[0])


def _build_items(items: list[NormalizedItem]) -> list[OrderItem]:
    return [OrderItem(**item.model_dump()) for item in items]


class ReconciliationEngine:
    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.store = OrderStore(db)
        self.settings = settings or get_settings()

    def draft(self, payload: Payload) -> OrderDraft:
        if isinstance(payload, WooOrderPayload):
            return draft_from_woocommerce(payload, self.settings.PLACEHOLDER_IMAGE)
        return draft_from_etsy(payload, self.settings.ETSY_PLACEHOLDER_IMAGE)

    def reconcile_raw(self, source: str, data: dict, mode: str) -> ReconcileResult:
        """Validate a raw payload dict, then reconcile it.

        A structurally invalid payload is a skip, not an error, so one bad
        order in a pull batch never stops the rest.
        """
        try:
            payload = parse_marketplace_payload(source, data)
        except ValidationError as exc:
            ident = data.get("id") or data.get("receipt_id") or "?"
            missing = sorted({_field_of(err["loc"], source) for err in exc.errors() if err.get("loc")})
            reason = "missing billing" if "billing" in missing else f"invalid payload ({', '.join(missing)})"
            logger.warning(f"Skipping {source} order {ident}: {reason}")
            return ReconcileResult(skipped=True, logs=[f"{ident}: {reason}, skipped"])
        return self.reconcile(payload, mode)

    def reconcile(self, payload: Payload, mode: str) -> ReconcileResult:
        draft = self.draft(payload)
        existing = self.store.get_by_key(draft.key)

        if existing is not None:
            if mode == WEBHOOK:
                logger.info(f"Duplicate delivery for {draft.key}, order {existing.id} left untouched")
                return ReconcileResult(
                    skipped=True, order_id=existing.id, logs=[f"{draft.key}: already exists"]
                )
            return self._refresh(existing, draft)
        return self._create(draft, mode)

    def _create(self, draft: OrderDraft, mode: str) -> ReconcileResult:
        labels = source_labels(draft.source, first_delivery=(mode == WEBHOOK or draft.source == SOURCE_ETSY))
        order = Order(
            barcode=draft.key,
            status=draft.status,
            labels=_dedupe(labels + list(draft.status_labels)),
            has_notification=True,
            items=_build_items(draft.items),
            **draft.fields,
        )
        try:
            self.db.add(order)
            self.db.flush()
            if draft.status == COMPLETED:
                log_activity(
                    self.db, order.id, activity.SYSTEM_AUTHOR, activity.STATUS_CHANGE,
                    activity.completion_details(SOURCE_LABELS[draft.source], via_webhook=(mode == WEBHOOK)),
                )
            self.db.commit()
        except IntegrityError:
            # A concurrent delivery inserted the same external key first
            self.db.rollback()
            winner = self.store.get_by_key(draft.key)
            if mode == WEBHOOK and winner is not None:
                logger.info(f"Lost insert race for {draft.key}, treating as duplicate")
                return ReconcileResult(
                    skipped=True, order_id=winner.id, logs=[f"{draft.key}: already exists"]
                )
            raise
        logger.info(f"Created order {order.id} from {draft.key}")
        return ReconcileResult(
            created=True, order_id=order.id, logs=[f"{draft.external_id}: synced successfully"]
        )

    def label_policy(self) -> str:
        policy = self.store.get_setting(REFRESH_LABEL_POLICY) or LABEL_POLICY_REPLACE
        return policy if policy in (LABEL_POLICY_REPLACE, LABEL_POLICY_PRESERVE) else LABEL_POLICY_REPLACE

    def _refresh(self, order: Order, draft: OrderDraft) -> ReconcileResult:
        previous_status = order.status
        labels = source_labels(draft.source) + list(draft.status_labels)
        if self.label_policy() == LABEL_POLICY_PRESERVE:
            labels = list(order.labels or []) + labels

        try:
            for name, value in draft.fields.items():
                setattr(order, name, value)
            # Local refresh time; the payload's modified date may predate staff edits
            order.updated_at = utcnow()
            order.status = draft.status
            order.labels = _dedupe(labels)
            order.has_notification = True
            order.items = _build_items(draft.items)
            log_activity(
                self.db, order.id, activity.SYSTEM_AUTHOR, activity.SYNC_REFRESH,
                f"{SOURCE_LABELS[draft.source]} ile senkronize edildi.",
            )
            if draft.status == COMPLETED and previous_status != COMPLETED:
                log_activity(
                    self.db, order.id, activity.SYSTEM_AUTHOR, activity.STATUS_CHANGE,
                    activity.completion_details(SOURCE_LABELS[draft.source]),
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(f"Refresh of {draft.key} rolled back", exc_info=True)
            raise

        logger.info(f"Refreshed order {order.id} from {draft.key}")
        return ReconcileResult(
            refreshed=True, order_id=order.id, logs=[f"{draft.external_id}: refreshed in place"]
        )
