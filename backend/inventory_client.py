"""
inventory_client.py

Async client for the Inventory Tonic API, for scripts and front ends.

What it provides:
- JWT login + authenticated requests (re-login once on 401)
- A query cache for the item list: every successful mutation invalidates it,
  the next read refetches the whole list
- A search view over the cached list (no extra request per keystroke)
- Notices after each mutation (title/description/variant) for whatever UI is attached

Environment variables expected (make_client_from_env):
- INVENTORY_API_URL: e.g. "https://your-domain.com/api"
- INVENTORY_API_EMAIL
- INVENTORY_API_PASSWORD

Optional:
- INVENTORY_API_TOKEN: pre-seeded token (otherwise we login)
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx

from core.filters import SearchView, is_low_stock
from core.query_cache import QueryCache

ITEMS_KEY = "inventory-items"


class ApiError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class Notice:
    title: str
    description: str
    variant: str = "default"  # "default" | "destructive"


def _detail(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text
    detail = data.get("detail") if isinstance(data, dict) else None
    if isinstance(detail, list):
        # pydantic errors: [{"loc": [...], "msg": "..."}]
        return "; ".join(str(d.get("msg", d)) for d in detail)
    return str(detail or data)


@dataclass
class InventoryApiClient:
    base_url: str
    email: str
    password: str
    token: Optional[str] = None
    on_notice: Optional[Callable[[Notice], None]] = None
    transport: Optional[httpx.AsyncBaseTransport] = None
    timeout: float = 30.0
    cache: QueryCache = field(default_factory=QueryCache)
    _http: Optional[httpx.AsyncClient] = field(default=None, init=False, repr=False)

    async def __aenter__(self) -> "InventoryApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self.base_url.rstrip("/"),
                transport=self.transport,
                timeout=self.timeout,
            )
        return self._http

    async def aclose(self) -> None:
        self.cache.clear()
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _notify(self, title: str, description: str, variant: str = "default") -> None:
        if self.on_notice is not None:
            self.on_notice(Notice(title=title, description=description, variant=variant))

    async def login(self) -> str:
        """
        FastAPI-Users JWT login endpoint.
        The backend uses: POST /auth/jwt/login with form fields: username, password
        """
        try:
            resp = await self.http.post(
                "/auth/jwt/login",
                data={"username": self.email, "password": self.password},
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise ApiError(f"Login failed: {e}") from e
        if resp.status_code >= 400:
            raise ApiError(f"Login failed ({resp.status_code}): {_detail(resp)}", resp.status_code)
        token = resp.json().get("access_token")
        if not token:
            raise ApiError("Login response missing access_token")
        self.token = token
        return token

    async def _send(self, method: str, path: str, json: Any, params: Optional[Dict[str, Any]]) -> httpx.Response:
        try:
            return await self.http.request(method, path, json=json, params=params, headers=self._headers())
        except httpx.HTTPError as e:
            raise ApiError(f"{method} {path} failed: {e}") from e

    async def _request(self, method: str, path: str, *, json: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        if not self.token:
            await self.login()

        resp = await self._send(method, path, json, params)

        # If token expired, retry once with a fresh login.
        if resp.status_code == 401:
            await self.login()
            resp = await self._send(method, path, json, params)

        if resp.status_code >= 400:
            raise ApiError(_detail(resp), resp.status_code)

        if resp.status_code == 204:
            return None
        return resp.json()

    # ----------------------------
    # Reads (cached)
    # ----------------------------

    async def _load_items(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/inventory/items")

    async def items(self) -> List[Dict[str, Any]]:
        """Item list, from cache unless a mutation made it stale."""
        return await self.cache.fetch(ITEMS_KEY, self._load_items)

    async def visible_items(self, search: str = "") -> SearchView:
        return SearchView(await self.items(), search)

    async def low_stock_items(self) -> List[Dict[str, Any]]:
        return [it for it in await self.items() if is_low_stock(it)]

    async def summary(self) -> Dict[str, Any]:
        return await self._request("GET", "/inventory/summary")

    # ----------------------------
    # Mutations
    # ----------------------------

    async def _mutate(self, method: str, path: str, *, json: Any = None, success: Optional[tuple] = None, failure: tuple) -> Any:
        try:
            result = await self._request(method, path, json=json)
        except ApiError as e:
            title, fallback = failure
            self._notify(title, e.message or fallback, "destructive")
            raise
        self.cache.invalidate(ITEMS_KEY)
        if success:
            self._notify(*success)
        return result

    async def add_item(
        self,
        *,
        name: str,
        sku: Optional[str] = None,
        category: Optional[str] = None,
        description: Optional[str] = None,
        quantity: Any = 0,
        unit_price: Any = None,
        low_stock_threshold: Any = 10,
    ) -> Dict[str, Any]:
        """
        Calls: POST /inventory/items
        Name is required; the server trims text fields and rounds unit_price to cents.
        """
        payload = {
            "name": name,
            "sku": sku,
            "category": category,
            "description": description,
            "quantity": quantity,
            "unit_price": unit_price,
            "low_stock_threshold": low_stock_threshold,
        }
        return await self._mutate(
            "POST",
            "/inventory/items",
            json=payload,
            success=("Item added", "New item has been added to your inventory."),
            failure=("Add failed", "Could not add item."),
        )

    async def edit_item(self, item_id: str, **changes: Any) -> Dict[str, Any]:
        return await self._mutate(
            "PATCH",
            f"/inventory/items/{item_id}",
            json=changes,
            success=("Item updated", "Your changes have been saved."),
            failure=("Update failed", "Could not update item."),
        )

    async def set_quantity(self, item_id: str, quantity: int) -> Dict[str, Any]:
        return await self._mutate(
            "PUT",
            f"/inventory/items/{item_id}/quantity",
            json={"quantity": quantity},
            failure=("Update failed", "Could not update stock."),
        )

    async def increment(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return await self.set_quantity(item["id"], int(item["quantity"]) + 1)

    async def decrement(self, item: Dict[str, Any]) -> Dict[str, Any]:
        # Clamp here, the API rejects negative quantities
        return await self.set_quantity(item["id"], max(0, int(item["quantity"]) - 1))

    async def delete_item(self, item_id: str, confirm: Callable[[str], bool]) -> bool:
        """
        Calls: DELETE /inventory/items/{id} once ``confirm`` answers True.
        Returns False (and sends nothing) when the user declines.
        """
        if not confirm("Delete this item?"):
            return False
        await self._mutate(
            "DELETE",
            f"/inventory/items/{item_id}",
            success=("Item deleted", "The item was removed from your inventory."),
            failure=("Delete failed", "Could not delete item."),
        )
        return True


def make_client_from_env(**kwargs: Any) -> InventoryApiClient:
    base_url = os.getenv("INVENTORY_API_URL", "").strip()
    email = os.getenv("INVENTORY_API_EMAIL", "").strip()
    password = os.getenv("INVENTORY_API_PASSWORD", "").strip()
    token = os.getenv("INVENTORY_API_TOKEN", "").strip() or None

    if not base_url:
        raise RuntimeError("Missing INVENTORY_API_URL")
    if not email:
        raise RuntimeError("Missing INVENTORY_API_EMAIL")
    if not password:
        raise RuntimeError("Missing INVENTORY_API_PASSWORD")

    return InventoryApiClient(base_url=base_url, email=email, password=password, token=token, **kwargs)


# -----------------------------------------------------------------------------
# Minimal "manual test" usage
# -----------------------------------------------------------------------------

async def _main() -> None:
    async with make_client_from_env(on_notice=lambda n: print(f"[{n.variant}] {n.title}: {n.description}")) as client:
        for it in await client.visible_items(""):
            flag = " (low stock)" if is_low_stock(it) else ""
            print(f"{it['name']}: {it['quantity']}{flag}")


if __name__ == "__main__":
    asyncio.run(_main())
