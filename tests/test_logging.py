import json
import logging

from orderdesk.core.logging_config import SecurityFilter, StructuredFormatter


def make_record(msg, *args):
    return logging.LogRecord("orderdesk.test", logging.INFO, __file__, 1, msg, args, None)


def test_marketplace_secrets_are_redacted():
    record = make_record("WooCommerce call consumer_secret=cs_live_123 for %s", "shop")
    SecurityFilter().filter(record)
    assert "cs_live_123" not in record.getMessage()
    assert "consumer_secret=***REDACTED***" in record.getMessage()


def test_records_are_single_json_objects():
    record = make_record("Created order %d from %s", 7, "WC-500")
    record.extra_fields = {"source": "woocommerce"}
    line = json.loads(StructuredFormatter().format(record))
    assert line["message"] == "Created order 7 from WC-500"
    assert line["level"] == "INFO"
    assert line["custom"] == {"source": "woocommerce"}


def test_request_id_is_echoed(client):
    resp = client.get("/health/live", headers={"X-Request-ID": "req-42"})
    assert resp.headers["X-Request-ID"] == "req-42"
    assert "X-Request-ID" in client.get("/health/live").headers
