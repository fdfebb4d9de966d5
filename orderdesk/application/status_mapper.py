from dataclasses import dataclass
from typing import Optional

INCOMING = "incoming"
AWAITING_CUSTOMER = "awaiting-customer"
PROCESSING = "processing"
PRINTED = "printed"
SHIPPED = "shipped"
COMPLETED = "completed"

PAYMENT_FAILED_LABEL = "payment-failed"
NEW_LABEL = "Yeni"

SOURCE_WOOCOMMERCE = "woocommerce"
SOURCE_ETSY = "etsy"
SOURCE_MANUAL = "manual"

SOURCE_PREFIXES = {
    SOURCE_WOOCOMMERCE: "WC",
    SOURCE_ETSY: "ETSY",
    SOURCE_MANUAL: "MANUAL",
}

SOURCE_LABELS = {
    SOURCE_WOOCOMMERCE: "WooCommerce",
    SOURCE_ETSY: "Etsy",
    SOURCE_MANUAL: "Manuel",
}

# Default board columns, seeded when the status table is empty
DEFAULT_STATUS_COLUMNS = (
    (INCOMING, "Gelen Siparişler", "bg-gray-100"),
    (AWAITING_CUSTOMER, "Müşteri Beklemede", "bg-yellow-50"),
    (PROCESSING, "Hazırlanıyor", "bg-blue-50"),
    (PRINTED, "Basıldı / Üretildi", "bg-purple-50"),
    (SHIPPED, "Kargolandı", "bg-green-50"),
    (COMPLETED, "Tamamlandı", "bg-green-100"),
)

_STATUS_TABLE = {
    "processing": (INCOMING, ()),
    "completed": (COMPLETED, ()),
    "on-hold": (AWAITING_CUSTOMER, ()),
    "pending": (AWAITING_CUSTOMER, ()),
    # Failed payments stay on the incoming column so staff see them
    "failed": (INCOMING, (PAYMENT_FAILED_LABEL,)),
    "cancelled": (INCOMING, (PAYMENT_FAILED_LABEL,)),
    "refunded": (INCOMING, (PAYMENT_FAILED_LABEL,)),
}


@dataclass(frozen=True)
class StatusMapping:
    status: str
    labels: tuple


def map_external_status(external_status: Optional[str]) -> StatusMapping:
    status, labels = _STATUS_TABLE.get((external_status or "").strip().lower(), (INCOMING, ()))
    return StatusMapping(status=status, labels=tuple(labels))


def external_key(source: str, external_id) -> str:
    return f"{SOURCE_PREFIXES[source]}-{external_id}"


def source_labels(source: str, first_delivery: bool = False) -> list:
    labels = [SOURCE_LABELS[source]]
    if first_delivery:
        labels.append(NEW_LABEL)
    return labels
