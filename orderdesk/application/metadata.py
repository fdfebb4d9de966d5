"""Line-item metadata extraction.

Marketplace line items carry their production details (paper type, size,
file links, notes) as free-form ``meta_data`` pairs whose keys are whatever
the shop's product-options plugin was configured with, in Turkish or English,
with or without diacritics. Everything here is a pure function over the
validated payload models in ``schemas``.
"""

import html
import re
from typing import Any, Iterable, Optional, Sequence

from orderdesk.application.aliases import (
    META_ALIASES,
    IMAGE_KEY_TERMS,
    ETSY_SIZE_PROPERTY_ID,
    ETSY_MATERIAL_PROPERTY_ID,
)
from orderdesk.application.schemas import (
    MetaEntry,
    WooLineItem,
    EtsyTransaction,
    NormalizedItem,
)

PLACEHOLDER_IMAGE = "https://placehold.co/600x400?text=Görsel+Yok"
DEFAULT_ITEM_NAME = "Ürün"
DEFAULT_UNIT = "cm"

_DIACRITICS = str.maketrans({
    "ğ": "g", "ü": "u", "ş": "s", "ı": "i", "ö": "o", "ç": "c",
    "\u0307": "",  # combining dot left behind by lowercasing İ
})
_TAG_PATTERN = re.compile(r"<[^>]*>?")
_AREA_UNIT_PATTERN = re.compile(r"\s*m2", re.IGNORECASE)
_SRC_PATTERN = re.compile(r"src=[\"'](.*?)[\"']")
_HREF_PATTERN = re.compile(r"href=[\"'](.*?)[\"']")


def normalize_key(key: Optional[str]) -> str:
    """Lowercase, fold Turkish diacritics and trim a meta key.

    >>> normalize_key("  Ölçü ")
    'olcu'
    """
    if not key:
        return ""
    return key.replace("İ", "i").lower().translate(_DIACRITICS).strip()


def sanitize_value(value: Any) -> Optional[str]:
    """Turn a raw meta value into plain text, or None when nothing is left.

    Entities are decoded before tags are stripped; the other way round an
    escaped tag such as ``&lt;b&gt;`` would survive as literal markup.
    """
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    text = str(value)
    text = html.unescape(text)
    text = _TAG_PATTERN.sub("", text)
    text = " ".join(text.split())
    return text or None


def _meta_value(entry: MetaEntry) -> Any:
    return entry.display_value if entry.display_value not in (None, "") else entry.value


def get_meta(meta: Iterable[MetaEntry], aliases: Sequence[str]) -> Optional[str]:
    """Return the sanitized value of the first meta entry matching any alias."""
    wanted = {normalize_key(alias) for alias in aliases}
    for entry in meta:
        if normalize_key(entry.key) in wanted or normalize_key(entry.display_key) in wanted:
            return sanitize_value(_meta_value(entry))
    return None


def lookup(meta: Iterable[MetaEntry], field: str) -> Optional[str]:
    return get_meta(meta, META_ALIASES[field])


def clean_area(area: str) -> str:
    return _AREA_UNIT_PATTERN.sub(" m²", area).strip()


def annotate_area(dimensions: Optional[str], area: Optional[str]) -> Optional[str]:
    """Append the area in parentheses unless the dimension string has it already."""
    if not area:
        return dimensions
    area = clean_area(area)
    if not dimensions:
        return area
    if area in dimensions:
        return dimensions
    return f"{dimensions} ({area})"


def extract_dimensions(meta: Sequence[MetaEntry]) -> Optional[str]:
    dimensions = lookup(meta, "dimensions")
    if not dimensions:
        width = lookup(meta, "width")
        height = lookup(meta, "height")
        unit = lookup(meta, "unit") or DEFAULT_UNIT
        if width and height:
            dimensions = f"{width} x {height} {unit}"
    return annotate_area(dimensions, lookup(meta, "area"))


def extract_image(item: WooLineItem, placeholder: str = PLACEHOLDER_IMAGE) -> str:
    if item.image and item.image.src:
        return item.image.src

    for entry in item.meta_data:
        key = normalize_key(entry.key)
        if not any(term in key for term in IMAGE_KEY_TERMS):
            continue
        if not isinstance(entry.value, str) or not entry.value:
            # First image-looking key decides, usable or not
            break
        match = _SRC_PATTERN.search(entry.value) or _HREF_PATTERN.search(entry.value)
        if match and match.group(1):
            return match.group(1)
        if entry.value.strip().startswith("http"):
            return entry.value.strip()
        break

    return placeholder


def _quantity(value: Optional[int]) -> int:
    if not value or value < 1:
        return 1
    return value


def _text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def normalize_line_item(item: WooLineItem, placeholder: str = PLACEHOLDER_IMAGE) -> NormalizedItem:
    meta = item.meta_data
    return NormalizedItem(
        name=_text(item.name) or DEFAULT_ITEM_NAME,
        quantity=_quantity(item.quantity),
        image_src=extract_image(item, placeholder),
        sku=_text(item.sku) or lookup(meta, "sku"),
        url=lookup(meta, "url"),
        material=lookup(meta, "material"),
        dimensions=extract_dimensions(meta),
        product_note=lookup(meta, "note"),
        sample_data=lookup(meta, "sample"),
    )


def _variation(tx: EtsyTransaction, property_id: int, name_hint: str) -> Optional[str]:
    for variation in tx.variations:
        if variation.property_id == property_id or name_hint in (variation.formatted_name or ""):
            return sanitize_value(variation.formatted_value)
    return None


def normalize_etsy_transaction(tx: EtsyTransaction, placeholder: str = PLACEHOLDER_IMAGE) -> NormalizedItem:
    image = tx.main_image.url_fullxfull if tx.main_image else None
    return NormalizedItem(
        name=_text(tx.title) or DEFAULT_ITEM_NAME,
        quantity=_quantity(tx.quantity),
        image_src=image or placeholder,
        sku=_text(tx.sku),
        dimensions=_variation(tx, ETSY_SIZE_PROPERTY_ID, "Size"),
        material=_variation(tx, ETSY_MATERIAL_PROPERTY_ID, "Material"),
    )
