import pytest

from orderdesk.application.locale import compose_city, region_name, upper_tr
from orderdesk.application.status_mapper import (
    map_external_status,
    external_key,
    source_labels,
    INCOMING,
    AWAITING_CUSTOMER,
    COMPLETED,
    PAYMENT_FAILED_LABEL,
    SOURCE_WOOCOMMERCE,
    SOURCE_ETSY,
    SOURCE_MANUAL,
)


@pytest.mark.parametrize("external, status", [
    ("processing", INCOMING),
    ("completed", COMPLETED),
    ("on-hold", AWAITING_CUSTOMER),
    ("pending", AWAITING_CUSTOMER),
    ("paid", INCOMING),
    (None, INCOMING),
])
def test_status_mapping(external, status):
    assert map_external_status(external).status == status


@pytest.mark.parametrize("external", ["failed", "cancelled", "refunded"])
def test_failed_payments_stay_incoming_with_label(external):
    mapping = map_external_status(external)
    assert mapping.status == INCOMING
    assert mapping.labels == (PAYMENT_FAILED_LABEL,)


def test_external_keys():
    assert external_key(SOURCE_WOOCOMMERCE, 500) == "WC-500"
    assert external_key(SOURCE_ETSY, "77") == "ETSY-77"
    assert external_key(SOURCE_MANUAL, 1700000000000) == "MANUAL-1700000000000"


def test_source_labels():
    assert source_labels(SOURCE_WOOCOMMERCE) == ["WooCommerce"]
    assert source_labels(SOURCE_WOOCOMMERCE, first_delivery=True) == ["WooCommerce", "Yeni"]


def test_upper_tr_keeps_dotted_i():
    assert upper_tr("istanbul") == "İSTANBUL"
    assert upper_tr("ığdır") == "IĞDIR"


def test_region_codes():
    assert region_name("TR34") == "İSTANBUL"
    assert region_name("XX99") == "XX99"


def test_compose_city():
    assert compose_city("Kadıköy", "TR34") == "Kadıköy / İSTANBUL"
    assert compose_city("istanbul", "TR34") == "istanbul"
    assert compose_city("", "TR06") == "ANKARA"
    assert compose_city("Çankaya", None) == "Çankaya"
    assert compose_city(None, None) is None
