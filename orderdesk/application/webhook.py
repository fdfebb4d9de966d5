import json
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from orderdesk.core_settings import Settings, get_settings
from orderdesk.core.logging_config import get_logger
from orderdesk.application import activity
from orderdesk.application.aliases import CARGO_BARCODE_KEY, CARGO_TRACKING_KEY
from orderdesk.application.reconciliation import ReconciliationEngine, WEBHOOK
from orderdesk.application.schemas import parse_marketplace_payload
from orderdesk.application.status_mapper import SOURCE_WOOCOMMERCE, external_key
from orderdesk.application.store import OrderStore, LAST_WEBHOOK_PAYLOAD, LAST_CARGO_WEBHOOK

logger = get_logger(__name__)

PING_PREFIX = "webhook_id="

@dataclass
class WebhookOutcome:
    status_code: int
    body: dict

def _invalid(message: str = "Invalid payload") -> WebhookOutcome:
    return WebhookOutcome(400, {"message": message})

class WebhookIngester:
    """Push entry point for WooCommerce order webhooks.

    Outcomes: a delivery ping is acknowledged without touching the store, a
    payload without identity or billing is rejected with 400, and anything
    else is handed to the reconciliation engine on its webhook path, where
    redeliveries of a known order are no-ops.
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.store = OrderStore(db)
        self.settings = settings or get_settings()

    def handle(self, raw_body: str) -> WebhookOutcome:
        try:
            return self._handle(raw_body)
        except Exception:
            self.db.rollback()
            logger.error("Webhook processing failed", exc_info=True)
            return WebhookOutcome(500, {"error": "Internal Server Error"})

    def _handle(self, raw_body: str) -> WebhookOutcome:
        if raw_body.startswith(PING_PREFIX):
            logger.info("WooCommerce webhook ping received")
            return WebhookOutcome(200, {"message": "Webhook ping received"})

        try:
            data = json.loads(raw_body)
        except ValueError:
            return _invalid()
        if not isinstance(data, dict):
            return _invalid()

        try:
            payload = parse_marketplace_payload(SOURCE_WOOCOMMERCE, data)
        except ValidationError as e:
            logger.warning(f"Rejected webhook payload: {e.error_count()} validation error(s)")
            return _invalid()

        self.store.set_setting(LAST_WEBHOOK_PAYLOAD, raw_body)

        result = ReconciliationEngine(self.db, self.settings).reconcile(payload, WEBHOOK)
        if result.skipped:
            return WebhookOutcome(200, {"success": True, "message": "Order already exists", "id": result.order_id})
        return WebhookOutcome(200, {"success": True, "message": "Order processed successfully", "id": result.order_id})

def _first(*values: Any) -> Optional[str]:
    for value in values:
        if value not in (None, ""):
            return str(value)
    return None

def _meta_lookup(meta: Any, *keys: str) -> Optional[str]:
    if not isinstance(meta, list):
        return None
    for entry in meta:
        if isinstance(entry, dict) and entry.get("key") in keys:
            return _first(entry.get("value"))
    return None

class CargoWebhookIngester:
    """Receives shipment barcodes from the cargo integrator for WooCommerce orders."""

    def __init__(self, db: Session):
        self.db = db
        self.store = OrderStore(db)

    def handle(self, raw_body: str) -> WebhookOutcome:
        try:
            return self._handle(raw_body)
        except Exception as e:
            self.db.rollback()
            logger.error("Cargo webhook processing failed", exc_info=True)
            return WebhookOutcome(500, {"error": str(e)})

    def _handle(self, raw_body: str) -> WebhookOutcome:
        if not raw_body.strip():
            return _invalid("Empty body")
        try:
            data = json.loads(raw_body)
        except ValueError:
            return _invalid()
        if not isinstance(data, dict):
            return _invalid()

        # Kept for the settings screen's payload inspector
        self.store.set_setting(LAST_CARGO_WEBHOOK, json.dumps(data, indent=2, ensure_ascii=False))

        order_ref = _first(data.get("order_id"), data.get("id"))
        barcode = _first(data.get("barcode"), data.get("cargo_barcode"), data.get("tracking_number"))
        tracking = _first(data.get("tracking_number"), data.get("cargo_tracking_number"))
        barcode = _meta_lookup(data.get("meta_data"), CARGO_BARCODE_KEY, "barcode") or barcode
        tracking = _meta_lookup(data.get("meta_data"), CARGO_TRACKING_KEY, "tracking_number") or tracking

        if not order_ref:
            return _invalid("Order ID not found in payload")
        if not barcode and not tracking:
            return WebhookOutcome(200, {"message": "No cargo data found to update"})

        order = self.store.get_by_key(external_key(SOURCE_WOOCOMMERCE, order_ref))
        if order is None:
            logger.info(f"Cargo data for unknown order WC-{order_ref} ignored")
            return WebhookOutcome(404, {"message": "Order not found in system"})

        if barcode:
            order.cargo_barcode = barcode
        if tracking:
            order.cargo_tracking_number = tracking
        activity.log_activity(
            self.db, order.id, activity.SYSTEM_AUTHOR, activity.CARGO_UPDATE,
            f"Kargo bilgisi alındı: {barcode or '-'} / {tracking or '-'}",
        )
        self.db.commit()
        logger.info(f"Order {order.id} updated with cargo data")
        return WebhookOutcome(200, {"success": True, "message": "Cargo data updated"})
