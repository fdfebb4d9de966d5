"""Meta alias tables for marketplace line items.

Each semantic field maps to the ordered spellings it may appear under in a
WooCommerce line item's ``meta_data``. Lookup goes through
``metadata.normalize_key`` so the tables only need one spelling per
diacritic-free variant, but a few accented spellings are kept because shops
paste them verbatim.
"""

META_ALIASES = {
    "material": (
        "pa_doku", "Nitelik", "Malzeme", "Kagit Turu", "Kagit Cinsi",
        "Material", "Paper Type", "Doku", "Kagit",
    ),
    "dimensions": (
        "Boyut", "Olculer", "Dimensions", "Ebat", "Size", "Olculeriniz",
        "Siparis Olcusu",
    ),
    "width": ("Genislik", "Width"),
    "height": ("Yukseklik", "Height"),
    "unit": ("Birim", "Unit"),
    "area": (
        "Toplam Alan", "Toplam Olcu", "Area", "Metrekare", "m2", "Total Size", "M2",
    ),
    "sku": (
        "Stok Kodu", "SKU", "_stok_kodu", "Urun Kodu", "Kod", "Product Code", "_sku",
    ),
    "url": (
        "_ozel_url", "ozel_url", "Özel Url", "Ozel Url", "Dosya Linki", "File Link",
        "Drive Link", "Link", "Url", "Siparis Dosyasi",
    ),
    "note": ("Ürün Notu", "Urun Notu", "Not", "Note", "_urun_notu"),
    "sample": ("Numune İsteği", "Numune Istegi", "Numune", "Sample", "_numune"),
}

# Substrings of a normalized meta key that mark it as carrying an image
IMAGE_KEY_TERMS = (
    "urun gorselleri", "gorsel", "resim", "image", "picture", "foto", "dosya",
    "upload", "img",
)

# Etsy variation property ids
ETSY_SIZE_PROPERTY_ID = 200
ETSY_MATERIAL_PROPERTY_ID = 500

# Order-level meta written by the cargo integrator plugin
CARGO_BARCODE_KEY = "_gcargo_barcode_exposed"
CARGO_TRACKING_KEY = "_gcargo_tracking_exposed"
