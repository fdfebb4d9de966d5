from orderdesk.application.metadata import (
    normalize_key,
    sanitize_value,
    extract_dimensions,
    extract_image,
    normalize_line_item,
    normalize_etsy_transaction,
    annotate_area,
    PLACEHOLDER_IMAGE,
)
from orderdesk.application.schemas import MetaEntry, WooLineItem, EtsyTransaction


def meta(*pairs):
    return [MetaEntry(key=key, value=value) for key, value in pairs]


def test_normalize_key_folds_turkish_letters():
    assert normalize_key("  Ölçü ") == "olcu"
    assert normalize_key("GENİŞLİK") == "genislik"
    assert normalize_key("Kağıt Türü") == "kagit turu"
    assert normalize_key(None) == ""


def test_sanitize_value_decodes_entities_before_stripping_tags():
    assert sanitize_value("&lt;b&gt;Kalın&lt;/b&gt;") == "Kalın"
    assert sanitize_value("<p>Mat   Kağıt</p>\n") == "Mat Kağıt"
    assert sanitize_value("   ") is None
    assert sanitize_value({"nested": True}) is None
    assert sanitize_value(False) is None
    assert sanitize_value(42) == "42"


def test_width_and_height_compose_dimensions():
    entries = meta(("Genişlik", "100"), ("Yükseklik", "200"))
    assert extract_dimensions(entries) == "100 x 200 cm"


def test_area_is_appended_once():
    entries = meta(("Genişlik", "100"), ("Yükseklik", "200"), ("Toplam Ölçü", "2m2"))
    dimensions = extract_dimensions(entries)
    assert dimensions == "100 x 200 cm (2 m²)"
    assert annotate_area(dimensions, "2m2") == dimensions


def test_explicit_dimensions_win_over_width_and_height():
    entries = meta(("Boyut", "30x40"), ("Genişlik", "100"), ("Yükseklik", "200"))
    assert extract_dimensions(entries) == "30x40"


def test_display_value_preferred_over_raw_value():
    entries = [MetaEntry(key="pa_malzeme", value="kanvas-350", display_key="Malzeme", display_value="Kanvas 350gr")]
    item = normalize_line_item(WooLineItem(name="Baskı", meta_data=entries))
    assert item.material == "Kanvas 350gr"


def test_image_from_line_item_image():
    item = WooLineItem(name="Baskı", image={"src": "https://shop.example.com/p.jpg"})
    assert extract_image(item) == "https://shop.example.com/p.jpg"


def test_image_from_html_meta_value():
    item = WooLineItem(
        name="Baskı",
        meta_data=meta(("Yüklenen Görsel", '<a href="https://cdn.example.com/up.png">up.png</a>')),
    )
    assert extract_image(item) == "https://cdn.example.com/up.png"


def test_image_falls_back_to_placeholder():
    item = WooLineItem(name="Baskı", meta_data=meta(("Görsel", "yok")))
    assert extract_image(item) == PLACEHOLDER_IMAGE
    assert extract_image(WooLineItem(name="Baskı"), "https://x/ph.png") == "https://x/ph.png"


def test_line_item_defaults():
    item = normalize_line_item(WooLineItem(name="  ", quantity=0))
    assert item.name == "Ürün"
    assert item.quantity == 1
    assert item.dimensions is None
    assert item.image_src == PLACEHOLDER_IMAGE


def test_etsy_variations_map_to_size_and_material():
    tx = EtsyTransaction(
        title="Poster",
        quantity=3,
        variations=[
            {"property_id": 200, "formatted_name": "Boyut", "formatted_value": "50x70 cm"},
            {"property_id": 513, "formatted_name": "Material", "formatted_value": "Mat Kağıt"},
        ],
    )
    item = normalize_etsy_transaction(tx, "https://x/etsy.png")
    assert item.dimensions == "50x70 cm"
    assert item.material == "Mat Kağıt"
    assert item.quantity == 3
    assert item.image_src == "https://x/etsy.png"
