from dataclasses import dataclass, field
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from orderdesk.core_settings import Settings, get_settings
from orderdesk.core.logging_config import get_logger
from orderdesk.application.errors import ConfigurationError, TransportError
from orderdesk.application.reconciliation import ReconciliationEngine, PULL
from orderdesk.application.status_mapper import SOURCE_WOOCOMMERCE, SOURCE_ETSY, SOURCE_LABELS
from orderdesk.application.store import (
    OrderStore,
    WC_URL, WC_KEY, WC_SECRET,
    ETSY_SHOP_ID, ETSY_API_KEY, ETSY_ACCESS_TOKEN,
)
from orderdesk.infrastructure.marketplaces import WooCommerceClient, EtsyClient

logger = get_logger(__name__)

REQUIRED_CREDENTIALS = {
    SOURCE_WOOCOMMERCE: (WC_URL, WC_KEY, WC_SECRET),
    SOURCE_ETSY: (ETSY_SHOP_ID, ETSY_API_KEY, ETSY_ACCESS_TOKEN),
}

ERROR_CONFIGURATION = "configuration"
ERROR_TRANSPORT = "transport"
ERROR_UNEXPECTED = "unexpected"

@dataclass
class SyncResult:
    success: bool
    message: str = ""
    logs: list = field(default_factory=list)
    count: int = 0
    error: Optional[str] = None
    error_kind: Optional[str] = None
    missing: list = field(default_factory=list)

    def as_response(self) -> dict:
        if self.success:
            return {"success": True, "message": self.message, "logs": self.logs, "count": self.count}
        return {"error": self.error}

class PullSyncer:
    """Pulls the recent order window from a marketplace and reconciles each order.

    Orders are processed one by one in their own transactions; a failing
    order is logged and the batch moves on. Only a missing configuration or
    a failed listing request ends the run early.
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.db = db
        self.store = OrderStore(db)
        self.settings = settings or get_settings()
        self.transport = transport

    def credentials(self, source: str) -> dict:
        stored = self.store.get_settings()
        required = REQUIRED_CREDENTIALS[source]
        missing = [key for key in required if not (stored.get(key) or "").strip()]
        if missing:
            raise ConfigurationError(
                f"{SOURCE_LABELS[source]} ayarları eksik: {', '.join(missing)}. "
                "Lütfen Ayarlar sayfasından tamamlayınız.",
                missing=missing,
            )
        return {key: stored[key].strip() for key in required}

    def fetch(self, source: str, creds: dict) -> list:
        if source == SOURCE_WOOCOMMERCE:
            client = WooCommerceClient(
                creds[WC_URL], creds[WC_KEY], creds[WC_SECRET],
                timeout=self.settings.HTTP_TIMEOUT, transport=self.transport,
            )
            return client.list_orders(per_page=self.settings.SYNC_PAGE_SIZE, after=self.settings.SYNC_MIN_CREATED)
        client = EtsyClient(
            self.settings.ETSY_API_BASE, creds[ETSY_SHOP_ID], creds[ETSY_API_KEY], creds[ETSY_ACCESS_TOKEN],
            timeout=self.settings.HTTP_TIMEOUT, transport=self.transport,
        )
        return client.list_receipts(limit=self.settings.SYNC_PAGE_SIZE)

    def sync(self, source: str) -> SyncResult:
        try:
            return self._sync(source)
        except Exception as e:
            self.db.rollback()
            logger.error(f"{SOURCE_LABELS[source]} sync failed", exc_info=True)
            return SyncResult(success=False, error=f"Senkronizasyon hatası: {e}", error_kind=ERROR_UNEXPECTED)

    def _sync(self, source: str) -> SyncResult:
        try:
            creds = self.credentials(source)
        except ConfigurationError as e:
            logger.warning(e.message)
            return SyncResult(success=False, error=e.message, error_kind=ERROR_CONFIGURATION, missing=e.missing)

        try:
            external_orders = self.fetch(source, creds)
        except TransportError as e:
            logger.error(f"{SOURCE_LABELS[source]} listing failed: {e.message} {e.body}")
            return SyncResult(
                success=False, error=f"Senkronizasyon hatası: {e.message}", error_kind=ERROR_TRANSPORT
            )

        engine = ReconciliationEngine(self.db, self.settings)
        count = 0
        logs = []
        for raw in external_orders:
            if not isinstance(raw, dict):
                logs.append("?: unexpected entry, skipped")
                continue
            ident = raw.get("id") or raw.get("receipt_id") or "?"
            try:
                result = engine.reconcile_raw(source, raw, PULL)
            except Exception as e:
                self.db.rollback()
                logger.error(f"Error processing {source} order {ident}", exc_info=True)
                logs.append(f"{ident}: ERROR - {e}")
                continue
            logs.extend(result.logs)
            if result.created or result.refreshed:
                count += 1

        message = f"{count} {SOURCE_LABELS[source]} siparişi işlendi."
        logger.info(message, extra={'extra_fields': {'source': source, 'fetched': len(external_orders)}})
        return SyncResult(success=True, message=message, logs=logs, count=count)
