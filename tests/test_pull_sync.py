import httpx

from payloads import woo_order, etsy_receipt

from orderdesk.application import reconciliation
from orderdesk.application.pull_sync import PullSyncer, ERROR_CONFIGURATION, ERROR_TRANSPORT, ERROR_UNEXPECTED
from orderdesk.application.store import OrderStore
from orderdesk.domain.models import Order


def configure_woocommerce(db):
    store = OrderStore(db)
    store.set_setting("wc_url", "https://shop.example.com/")
    store.set_setting("wc_key", "ck_test")
    store.set_setting("wc_secret", "cs_test")


def configure_etsy(db):
    store = OrderStore(db)
    store.set_setting("etsy_shop_id", "12345")
    store.set_setting("etsy_api_key", "key")
    store.set_setting("etsy_access_token", "token")


class Recorder:
    def __init__(self, status_code=200, json=None, text=None):
        self.requests = []
        self.status_code = status_code
        self.json = json
        self.text = text

    def __call__(self, request):
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.json)


class TestWooCommerceSync:
    def test_missing_configuration_makes_no_calls(self, db):
        OrderStore(db).set_setting("wc_key", "ck_test")
        recorder = Recorder(json=[])
        result = PullSyncer(db, transport=httpx.MockTransport(recorder)).sync("woocommerce")

        assert not result.success
        assert result.error_kind == ERROR_CONFIGURATION
        assert "eksik" in result.error
        assert result.missing == ["wc_url", "wc_secret"]
        assert recorder.requests == []
        assert result.as_response() == {"error": result.error}

    def test_orders_are_listed_with_credentials_and_window(self, db):
        configure_woocommerce(db)
        recorder = Recorder(json=[woo_order(500), woo_order(501)])
        result = PullSyncer(db, transport=httpx.MockTransport(recorder)).sync("woocommerce")

        assert result.success
        assert result.count == 2
        assert result.message == "2 WooCommerce siparişi işlendi."
        request = recorder.requests[0]
        assert request.url.path == "/wp-json/wc/v3/orders"
        assert request.url.params["per_page"] == "20"
        assert request.url.params["after"] == "2025-12-20T00:00:00"
        assert request.headers["authorization"].startswith("Basic ")
        assert db.query(Order).count() == 2

    def test_second_run_refreshes_instead_of_duplicating(self, db):
        configure_woocommerce(db)
        transport = httpx.MockTransport(Recorder(json=[woo_order(500)]))
        PullSyncer(db, transport=transport).sync("woocommerce")
        result = PullSyncer(db, transport=transport).sync("woocommerce")

        assert result.logs == ["500: refreshed in place"]
        assert db.query(Order).count() == 1

    def test_one_bad_order_does_not_stop_the_batch(self, db, monkeypatch):
        configure_woocommerce(db)
        broken = woo_order(501)
        del broken["billing"]
        orders = [woo_order(500), broken, "garbage", woo_order(502), woo_order(503)]

        real_create = reconciliation.ReconciliationEngine._create

        def failing_create(self, draft, mode):
            if draft.external_id == 502:
                raise ValueError("disk full")
            return real_create(self, draft, mode)

        monkeypatch.setattr(reconciliation.ReconciliationEngine, "_create", failing_create)
        result = PullSyncer(db, transport=httpx.MockTransport(Recorder(json=orders))).sync("woocommerce")

        assert result.success
        assert result.count == 2
        assert result.logs == [
            "500: synced successfully",
            "501: missing billing, skipped",
            "?: unexpected entry, skipped",
            "502: ERROR - disk full",
            "503: synced successfully",
        ]
        assert {o.barcode for o in db.query(Order).all()} == {"WC-500", "WC-503"}

    def test_http_error_status_is_reported(self, db):
        configure_woocommerce(db)
        recorder = Recorder(status_code=401, text="invalid consumer key")
        result = PullSyncer(db, transport=httpx.MockTransport(recorder)).sync("woocommerce")

        assert not result.success
        assert result.error_kind == ERROR_TRANSPORT
        assert result.error.startswith("Senkronizasyon hatası:")
        assert "401" in result.error

    def test_connection_failure_is_reported(self, db):
        configure_woocommerce(db)

        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = PullSyncer(db, transport=httpx.MockTransport(refuse)).sync("woocommerce")
        assert not result.success
        assert result.error_kind == ERROR_TRANSPORT

    def test_html_page_instead_of_json_is_reported(self, db):
        configure_woocommerce(db)
        recorder = Recorder(text="<html><body>WordPress maintenance</body></html>")
        result = PullSyncer(db, transport=httpx.MockTransport(recorder)).sync("woocommerce")

        assert not result.success
        assert result.error_kind == ERROR_TRANSPORT
        assert "beklenmeyen" in result.error
        assert db.query(Order).count() == 0

    def test_unforeseen_failure_is_reported_not_raised(self, db, monkeypatch):
        configure_woocommerce(db)

        def explode(self, source, creds):
            raise RuntimeError("decoder crashed")

        monkeypatch.setattr(PullSyncer, "fetch", explode)
        result = PullSyncer(db).sync("woocommerce")

        assert not result.success
        assert result.error_kind == ERROR_UNEXPECTED
        assert result.error == "Senkronizasyon hatası: decoder crashed"


class TestEtsySync:
    def test_missing_configuration(self, db):
        result = PullSyncer(db).sync("etsy")
        assert result.error_kind == ERROR_CONFIGURATION
        assert result.missing == ["etsy_shop_id", "etsy_api_key", "etsy_access_token"]

    def test_receipts_are_reconciled(self, db):
        configure_etsy(db)
        recorder = Recorder(json={"count": 1, "results": [etsy_receipt(9001)]})
        result = PullSyncer(db, transport=httpx.MockTransport(recorder)).sync("etsy")

        assert result.success
        assert result.message == "1 Etsy siparişi işlendi."
        request = recorder.requests[0]
        assert request.url.path.endswith("/shops/12345/receipts")
        assert request.url.params["was_paid"] == "true"
        assert request.url.params["state"] == "paid"
        assert request.headers["x-api-key"] == "key"
        assert request.headers["authorization"] == "Bearer token"
        assert OrderStore(db).get_by_key("ETSY-9001") is not None

    def test_list_body_instead_of_receipt_page_is_reported(self, db):
        configure_etsy(db)
        result = PullSyncer(db, transport=httpx.MockTransport(Recorder(json=[]))).sync("etsy")

        assert not result.success
        assert result.error_kind == ERROR_TRANSPORT
        assert result.error == "Senkronizasyon hatası: Etsy beklenmeyen yanıt döndürdü"


def test_sync_endpoint(client, db):
    resp = client.post("/sync/woocommerce")
    assert resp.status_code == 400
    assert "eksik" in resp.json()["error"]
    assert client.post("/sync/amazon").status_code == 404


def test_sync_endpoint_reports_listing_faults_as_json(client, db, monkeypatch):
    configure_woocommerce(db)

    def explode(self, source, creds):
        raise RuntimeError("decoder crashed")

    monkeypatch.setattr(PullSyncer, "fetch", explode)
    resp = client.post("/sync/woocommerce")
    assert resp.status_code == 502
    assert resp.json() == {"error": "Senkronizasyon hatası: decoder crashed"}
