# backend/client/inventory_client.py
"""
Async client for the inventory API.

Reads go through an injected QueryCache keyed by collection name; every
successful mutation invalidates the collections it touches so the next read
refetches. Multi-step writes (product, then competitor prices, then kit
members) are plain sequential calls: a failure halfway leaves the earlier
steps applied.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from schemas.product import CompetitorPriceIn, KitProductIn
from utils.cache import QueryCache
from utils.debounce import QuantityControl
from utils.errors import BackendError, InvalidKitError, NotFoundError
from utils.pricing import KitLine, aggregate_kit, kit_name
from utils.text import normalized_includes

logger = logging.getLogger(__name__)

PRODUCTS = "products"
PRODUCT_TYPES = "product_types"


class InventoryClient:
    def __init__(self, base_url: str, token: Optional[str] = None, cache: Optional[QueryCache] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.cache = cache if cache is not None else QueryCache()
        self.token = token
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport)

        self.product_types = ProductTypeHooks(self)
        self.products = ProductHooks(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def login(self, email: str, password: str) -> str:
        data = await self.request("POST", "/login", json={"email": email, "password": password})
        self.token = data["access_token"]
        self.cache.clear()
        return self.token

    async def request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Inventory API unreachable ({method} {path}): {e}")
            raise BackendError(str(e)) from e

        if response.status_code >= 400:
            raise BackendError(_error_detail(response), status_code=response.status_code)

        if not response.content:
            return None
        return response.json()


def _error_detail(response: httpx.Response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    if detail is None:
        return response.text or f"HTTP {response.status_code}"
    return detail if isinstance(detail, str) else str(detail)


# =========================
# PRODUCT TYPES
# =========================
class ProductTypeHooks:
    def __init__(self, client: InventoryClient):
        self.client = client

    async def list(self) -> List[Dict[str, Any]]:
        return await self.client.cache.get_or_fetch(
            PRODUCT_TYPES, lambda: self.client.request("GET", "/product-types")
        )

    async def create(self, name: str) -> Dict[str, Any]:
        created = await self.client.request("POST", "/product-types", json={"name": name})
        self.client.cache.invalidate(PRODUCT_TYPES)
        return created

    async def update(self, type_id: str, name: str) -> Dict[str, Any]:
        updated = await self.client.request("PUT", f"/product-types/{type_id}", json={"name": name})
        # Products carry the type name
        self.client.cache.invalidate(PRODUCT_TYPES, PRODUCTS)
        return updated

    async def delete(self, type_id: str) -> None:
        await self.client.request("DELETE", f"/product-types/{type_id}")
        self.client.cache.invalidate(PRODUCT_TYPES)


# =========================
# PRODUCTS AND KITS
# =========================
class ProductHooks:
    def __init__(self, client: InventoryClient):
        self.client = client

    async def list(self) -> List[Dict[str, Any]]:
        """All products and kits, newest first, with competitor prices and kit members."""
        return await self.client.cache.get_or_fetch(
            PRODUCTS, lambda: self.client.request("GET", "/products")
        )

    async def get(self, product_id: str) -> Dict[str, Any]:
        for product in await self.list():
            if product["id"] == product_id:
                return product
        raise NotFoundError("Product not found")

    async def search(self, term: Optional[str] = None, type_ids: Optional[Iterable[str]] = None,
                     is_kit: Optional[bool] = None) -> List[Dict[str, Any]]:
        """Filter the cached list locally; the term ignores case and accents."""
        wanted_types = set(type_ids) if type_ids else None
        results = []
        for product in await self.list():
            if is_kit is not None and product["is_kit"] != is_kit:
                continue
            if wanted_types is not None and product.get("type_id") not in wanted_types:
                continue
            if term and not (normalized_includes(product["name"], term)
                             or normalized_includes(product.get("type_name"), term)):
                continue
            results.append(product)
        return results

    async def create(self, data: Dict[str, Any],
                     competitor_prices: Optional[Iterable[CompetitorPriceIn]] = None,
                     kit_products: Optional[Iterable[KitProductIn]] = None) -> Dict[str, Any]:
        product = await self.client.request("POST", "/products", json=data)

        await self._insert_competitor_prices(product["id"], competitor_prices or [])
        if product.get("is_kit"):
            await self._insert_kit_products(product["id"], kit_products or [])

        self.client.cache.invalidate(PRODUCTS)
        return product

    async def update(self, product_id: str, updates: Dict[str, Any],
                     competitor_prices: Optional[Iterable[CompetitorPriceIn]] = None,
                     kit_products: Optional[Iterable[KitProductIn]] = None) -> Dict[str, Any]:
        """
        Patch the product, then replace each sub-collection that was given
        (delete all, insert new). Not transactional.
        """
        product = await self.client.request("PATCH", f"/products/{product_id}", json=updates)

        if competitor_prices is not None:
            await self.client.request("DELETE", "/competitor-prices", params={"product_id": product_id})
            await self._insert_competitor_prices(product_id, competitor_prices)

        if kit_products is not None:
            await self.client.request("DELETE", "/kit-products", params={"kit_id": product_id})
            await self._insert_kit_products(product_id, kit_products)

        self.client.cache.invalidate(PRODUCTS)
        return product

    async def delete(self, product_id: str) -> None:
        await self.client.request("DELETE", f"/products/{product_id}")
        self.client.cache.invalidate(PRODUCTS)

    async def update_quantity(self, product_id: str, delta: int) -> Dict[str, Any]:
        product = await self.get(product_id)
        return await self.set_quantity(product_id, product["quantity"] + delta)

    async def set_quantity(self, product_id: str, quantity: int) -> Dict[str, Any]:
        updated = await self.client.request(
            "PATCH", f"/products/{product_id}/quantity", json={"quantity": max(0, quantity)}
        )
        self.client.cache.invalidate(PRODUCTS)
        return updated

    def quantity_control(self, product: Dict[str, Any], **kwargs) -> QuantityControl:
        """Debounced quantity editor that commits through set_quantity."""
        product_id = product["id"]

        async def _commit(value: int):
            await self.set_quantity(product_id, value)

        return QuantityControl(product["quantity"], _commit, **kwargs)

    # ---- kits ----
    async def kit_summary(self, items: Iterable[KitProductIn]) -> Dict[str, Any]:
        """Name and aggregated prices of a prospective kit."""
        items = list(items)
        if len({i.product_id for i in items}) < 2:
            raise InvalidKitError("Select at least 2 products to build a kit")

        by_id = {p["id"]: p for p in await self.list()}
        lines, names = [], []
        for item in items:
            member = by_id.get(item.product_id)
            if member is None:
                raise NotFoundError(f"Product {item.product_id} not found")
            if member["is_kit"]:
                raise InvalidKitError(f"'{member['name']}' is a kit and cannot be part of another kit")
            lines.append(KitLine(unit_cost=member["cost_price"], unit_sale=member["sale_price"],
                                 quantity=item.quantity))
            names.append((member["name"], item.quantity))

        totals = aggregate_kit(lines)
        return {
            "name": kit_name(names),
            "total_cost": totals.total_cost,
            "total_sale": totals.total_sale,
            "profit_rate": totals.implied_rate,
        }

    async def create_kit(self, items: Iterable[KitProductIn], sale_price: Optional[float] = None) -> Dict[str, Any]:
        items = list(items)
        summary = await self.kit_summary(items)
        return await self.create(
            {
                "name": summary["name"],
                "type_id": None,
                "cost_price": summary["total_cost"],
                "profit_rate": summary["profit_rate"],
                "sale_price": sale_price or summary["total_sale"],
                "quantity": 0,
                "is_kit": True,
            },
            kit_products=items,
        )

    async def update_kit(self, kit_id: str, items: Iterable[KitProductIn], name: Optional[str] = None,
                         sale_price: Optional[float] = None) -> Dict[str, Any]:
        items = list(items)
        kit = await self.get(kit_id)
        if not kit["is_kit"]:
            raise InvalidKitError(f"Product '{kit['name']}' is not a kit")
        summary = await self.kit_summary(items)
        return await self.update(
            kit_id,
            {
                "name": name or kit["name"],
                "cost_price": summary["total_cost"],
                "profit_rate": summary["profit_rate"],
                "sale_price": sale_price or summary["total_sale"],
            },
            kit_products=items,
        )

    # ---- internals ----
    async def _insert_competitor_prices(self, product_id: str, items: Iterable[CompetitorPriceIn]) -> None:
        payload = [{"product_id": product_id, **item.model_dump()} for item in items]
        if payload:
            await self.client.request("POST", "/competitor-prices", json=payload)

    async def _insert_kit_products(self, kit_id: str, items: Iterable[KitProductIn]) -> None:
        payload = [{"kit_id": kit_id, **item.model_dump()} for item in items]
        if payload:
            await self.client.request("POST", "/kit-products", json=payload)
