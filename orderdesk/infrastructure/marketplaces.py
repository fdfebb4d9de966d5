import httpx
from typing import Optional

from orderdesk.application.errors import TransportError

BODY_PREVIEW_CHARS = 200

def _check(response: httpx.Response, marketplace: str) -> None:
    if response.is_success:
        return
    body = response.text[:BODY_PREVIEW_CHARS]
    raise TransportError(
        f"{marketplace} bağlantı hatası: {response.status_code} {response.reason_phrase}",
        status_code=response.status_code,
        body=body,
    )

def _unexpected(response: httpx.Response, marketplace: str) -> TransportError:
    return TransportError(
        f"{marketplace} beklenmeyen yanıt döndürdü",
        status_code=response.status_code,
        body=response.text[:BODY_PREVIEW_CHARS],
    )

def _json(response: httpx.Response, marketplace: str):
    # A misconfigured URL often answers 200 with an HTML page
    try:
        return response.json()
    except ValueError as e:
        raise _unexpected(response, marketplace) from e

class WooCommerceClient:
    """Read-only client for the WooCommerce REST API (wc/v3)."""

    def __init__(self, base_url: str, consumer_key: str, consumer_secret: str,
                 timeout: float = 15.0, transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.auth = httpx.BasicAuth(consumer_key, consumer_secret)
        self.timeout = timeout
        self.transport = transport

    def list_orders(self, per_page: int, after: str) -> list:
        try:
            with httpx.Client(timeout=self.timeout, auth=self.auth, transport=self.transport) as client:
                response = client.get(
                    f"{self.base_url}/wp-json/wc/v3/orders",
                    params={"per_page": per_page, "after": after},
                )
        except httpx.HTTPError as e:
            raise TransportError(f"WooCommerce'e bağlanılamadı: {e}") from e
        _check(response, "WooCommerce")
        data = _json(response, "WooCommerce")
        if not isinstance(data, list):
            raise _unexpected(response, "WooCommerce")
        return data

class EtsyClient:
    """Read-only client for Etsy Open API v3 shop receipts."""

    def __init__(self, api_base: str, shop_id: str, api_key: str, access_token: str,
                 timeout: float = 15.0, transport: Optional[httpx.BaseTransport] = None):
        self.api_base = api_base.rstrip("/")
        self.shop_id = shop_id
        self.headers = {
            "x-api-key": api_key,
            "Authorization": f"Bearer {access_token}",
        }
        self.timeout = timeout
        self.transport = transport

    def list_receipts(self, limit: int) -> list:
        try:
            with httpx.Client(timeout=self.timeout, headers=self.headers, transport=self.transport) as client:
                response = client.get(
                    f"{self.api_base}/shops/{self.shop_id}/receipts",
                    params={"state": "paid", "was_paid": "true", "limit": limit},
                )
        except httpx.HTTPError as e:
            raise TransportError(f"Etsy'ye bağlanılamadı: {e}") from e
        _check(response, "Etsy")
        data = _json(response, "Etsy")
        if not isinstance(data, dict):
            raise _unexpected(response, "Etsy")
        results = data.get("results") or []
        if not isinstance(results, list):
            raise _unexpected(response, "Etsy")
        return results
