from typing import Optional

# WooCommerce billing.state codes for Turkish provinces
REGION_NAMES = {
    "TR01": "ADANA", "TR02": "ADIYAMAN", "TR03": "AFYONKARAHİSAR", "TR04": "AĞRI", "TR05": "AMASYA",
    "TR06": "ANKARA", "TR07": "ANTALYA", "TR08": "ARTVİN", "TR09": "AYDIN", "TR10": "BALIKESİR",
    "TR11": "BİLECİK", "TR12": "BİNGÖL", "TR13": "BİTLİS", "TR14": "BOLU", "TR15": "BURDUR",
    "TR16": "BURSA", "TR17": "ÇANAKKALE", "TR18": "ÇANKIRI", "TR19": "ÇORUM", "TR20": "DENİZLİ",
    "TR21": "DİYARBAKIR", "TR22": "EDİRNE", "TR23": "ELAZIĞ", "TR24": "ERZİNCAN", "TR25": "ERZURUM",
    "TR26": "ESKİŞEHİR", "TR27": "GAZİANTEP", "TR28": "GİRESUN", "TR29": "GÜMÜŞHANE", "TR30": "HAKKARİ",
    "TR31": "HATAY", "TR32": "ISPARTA", "TR33": "MERSİN", "TR34": "İSTANBUL", "TR35": "İZMİR",
    "TR36": "KARS", "TR37": "KASTAMONU", "TR38": "KAYSERİ", "TR39": "KIRKLARELİ", "TR40": "KIRŞEHİR",
    "TR41": "KOCAELİ", "TR42": "KONYA", "TR43": "KÜTAHYA", "TR44": "MALATYA", "TR45": "MANİSA",
    "TR46": "KAHRAMANMARAŞ", "TR47": "MARDİN", "TR48": "MUĞLA", "TR49": "MUŞ", "TR50": "NEVŞEHİR",
    "TR51": "NİĞDE", "TR52": "ORDU", "TR53": "RİZE", "TR54": "SAKARYA", "TR55": "SAMSUN",
    "TR56": "SİİRT", "TR57": "SİNOP", "TR58": "SİVAS", "TR59": "TEKİRDAĞ", "TR60": "TOKAT",
    "TR61": "TRABZON", "TR62": "TUNCELİ", "TR63": "ŞANLIURFA", "TR64": "UŞAK", "TR65": "VAN",
    "TR66": "YOZGAT", "TR67": "ZONGULDAK", "TR68": "AKSARAY", "TR69": "BAYBURT", "TR70": "KARAMAN",
    "TR71": "KIRIKKALE", "TR72": "BATMAN", "TR73": "ŞIRNAK", "TR74": "BARTIN", "TR75": "ARDAHAN",
    "TR76": "IĞDIR", "TR77": "YALOVA", "TR78": "KARABÜK", "TR79": "KİLİS", "TR80": "OSMANİYE",
    "TR81": "DÜZCE",
}

_TR_UPPER = str.maketrans({"i": "İ", "ı": "I"})


def upper_tr(text: str) -> str:
    """Uppercase with Turkish dotted/dotless i rules."""
    return text.translate(_TR_UPPER).upper()


def region_name(code: str) -> str:
    """Resolve a region code to its display name; unknown codes pass through."""
    return REGION_NAMES.get(code, code)


def compose_city(city: Optional[str], region_code: Optional[str]) -> Optional[str]:
    """Combine the free-text city with the resolved region.

    "Kadıköy" + TR34 gives "Kadıköy / İSTANBUL", while "istanbul" + TR34 stays
    "istanbul" since it already names the region.
    """
    city = (city or "").strip() or None
    if not region_code:
        return city
    region = upper_tr(region_name(region_code))
    if not city:
        return region
    if region in upper_tr(city):
        return city
    return f"{city} / {region}"
