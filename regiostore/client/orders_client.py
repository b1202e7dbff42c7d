from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

import requests

logger = logging.getLogger(__name__)


class OrdersApiError(RuntimeError):
    """A request to the orders API failed.

    ``status_code`` is 0 when no HTTP response was received or when the call
    was refused locally before being sent.
    """

    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(f"{code}: {message}")
        self.status_code = int(status_code)
        self.code = code
        self.message = message


@dataclass
class CachedItem:
    order: dict
    item: dict


@dataclass
class OrderItemCache:
    """Client-side copy of order items keyed by ``(order_id, item_id)``.

    Every mutation response replaces all cached entries of the order it
    returns, so list and detail views read the same state.
    """

    _entries: dict = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def get(self, order_id: int, item_id: int) -> CachedItem | None:
        with self._lock:
            return self._entries.get((int(order_id), int(item_id)))

    def put(self, order_id: int, item_id: int, order: dict, item: dict) -> None:
        with self._lock:
            self._entries[(int(order_id), int(item_id))] = CachedItem(order=order, item=item)

    def invalidate_order(self, order_id: int) -> None:
        with self._lock:
            for key in [k for k in self._entries if k[0] == int(order_id)]:
                del self._entries[key]

    def store_order(self, order: dict) -> None:
        order_id = int(order["id"])
        header = {k: v for k, v in order.items() if k != "items"}
        with self._lock:
            for key in [k for k in self._entries if k[0] == order_id]:
                del self._entries[key]
            for item in order.get("items") or []:
                self._entries[(order_id, int(item["id"]))] = CachedItem(order=header, item=item)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _require_text(value, message: str) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise OrdersApiError(0, "VALIDATION_FAILED", message)
    return text


class _OrdersClientBase:
    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        session: requests.Session | None = None,
        timeout: float = 25,
        cache: OrderItemCache | None = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout
        self.cache = cache if cache is not None else OrderItemCache()

    def _request(self, method: str, path: str, *, json: dict | None = None, params: dict | None = None, headers: dict | None = None) -> dict:
        all_headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }
        all_headers.update(headers or {})
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, json=json, params=params, headers=all_headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("orders_api_unreachable method=%s path=%s err=%s", method, path, e.__class__.__name__)
            raise OrdersApiError(0, "NETWORK_ERROR", str(e) or "Request failed")

        try:
            body = r.json() if r.content else {}
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"payload": body}
        if r.status_code < 200 or r.status_code >= 300:
            code = body.get("error") if isinstance(body.get("error"), str) else f"HTTP_{r.status_code}"
            message = (body.get("message") or f"HTTP {r.status_code}").strip()
            logger.info("orders_api_error method=%s path=%s status=%s code=%s", method, path, r.status_code, code)
            raise OrdersApiError(r.status_code, code, message)
        return body

    def _all_pages(self, path: str, params: dict | None = None) -> list[dict]:
        rows: list[dict] = []
        query = dict(params or {})
        while True:
            body = self._request("GET", path, params=query or None)
            page = list(body.get("orders") or [])
            rows.extend(page)
            if not body.get("has_more") or not page:
                return rows
            query["offset"] = int(body.get("offset") or 0) + len(page)

    def _mutate(self, method: str, path: str, order_id: int, payload: dict) -> dict:
        # Drop the stale view first so a failed call never leaves it readable.
        self.cache.invalidate_order(order_id)
        body = self._request(method, path, json=payload)
        order = body.get("order")
        if isinstance(order, dict) and order.get("id") is not None:
            self.cache.store_order(order)
        return order or {}

    def timeline(self, order_id: int, item_id: int) -> list[dict]:
        body = self._request("GET", f"/api/orders/{int(order_id)}/items/{int(item_id)}/timeline")
        return list(body.get("items") or [])


class BuyerOrdersClient(_OrdersClientBase):
    def place_order(self, payload: dict, *, idempotency_key: str | None = None) -> dict:
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        body = self._request("POST", "/api/user/orders", json=payload, headers=headers)
        order = body.get("order") or {}
        if order.get("id") is not None:
            self.cache.store_order(order)
        return order

    def list_orders(self) -> list[dict]:
        orders = self._all_pages("/api/user/orders")
        for order in orders:
            self.cache.store_order(order)
        return orders

    def get_item(self, order_id: int, item_id: int, *, refresh: bool = False) -> CachedItem:
        if not refresh:
            hit = self.cache.get(order_id, item_id)
            if hit is not None:
                return hit
        body = self._request("GET", f"/api/user/orders/items/{int(item_id)}")
        order = dict(body.get("order") or {})
        item = order.pop("item", None) or {}
        self.cache.put(int(order.get("id") or order_id), int(item.get("id") or item_id), order, item)
        return self.cache.get(int(order.get("id") or order_id), int(item.get("id") or item_id))

    def cancel_item(self, order_id: int, item_id: int, reason: str, *, version: int | None = None) -> dict:
        payload = {"reason": _require_text(reason, "Cancellation reason is required")}
        if version is not None:
            payload["version"] = int(version)
        return self._mutate("POST", f"/api/user/orders/{int(order_id)}/items/{int(item_id)}/cancel", order_id, payload)

    def request_refund(self, order_id: int, item_id: int, reason: str, *, version: int | None = None) -> dict:
        payload = {"reason": _require_text(reason, "Refund reason is required")}
        if version is not None:
            payload["version"] = int(version)
        return self._mutate("POST", f"/api/user/orders/{int(order_id)}/items/{int(item_id)}/refund", order_id, payload)

    def rate_item(self, order_id: int, item_id: int, rating: int) -> dict:
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise OrdersApiError(0, "VALIDATION_FAILED", "Rating must be between 1 and 5")
        return self._mutate("POST", f"/api/user/orders/{int(order_id)}/items/{int(item_id)}/rate", order_id, {"rating": rating})


class SellerOrdersClient(_OrdersClientBase):
    def list_orders(self, status: str | None = None) -> list[dict]:
        params = {"status": status} if status else None
        return self._all_pages("/api/seller/orders", params)

    def get_item(self, order_id: int, item_id: int, *, refresh: bool = False) -> CachedItem:
        if not refresh:
            hit = self.cache.get(order_id, item_id)
            if hit is not None:
                return hit
        body = self._request("GET", f"/api/seller/orders/{int(order_id)}/items/{int(item_id)}")
        self.cache.store_order(body.get("order") or {"id": order_id, "items": []})
        hit = self.cache.get(order_id, item_id)
        if hit is None:
            raise OrdersApiError(404, "NOT_FOUND", "Order or item not found")
        return hit

    def advance_status(self, order_id: int, item_id: int, status: str, *, version: int | None = None) -> dict:
        payload = {"status": status}
        if version is not None:
            payload["version"] = int(version)
        return self._mutate("PATCH", f"/api/seller/orders/{int(order_id)}/items/{int(item_id)}/status", order_id, payload)

    def approve_refund(self, order_id: int, item_id: int, *, version: int | None = None) -> dict:
        payload = {"action": "approve"}
        if version is not None:
            payload["version"] = int(version)
        return self._mutate("PATCH", f"/api/seller/orders/{int(order_id)}/items/{int(item_id)}/refund", order_id, payload)

    def reject_refund(self, order_id: int, item_id: int, rejection_reason: str, *, version: int | None = None) -> dict:
        payload = {
            "action": "reject",
            "rejectionReason": _require_text(rejection_reason, "Rejection reason is required"),
        }
        if version is not None:
            payload["version"] = int(version)
        return self._mutate("PATCH", f"/api/seller/orders/{int(order_id)}/items/{int(item_id)}/refund", order_id, payload)
