"""Shopify Admin GraphQL order source.

Looks up orders by their display name (``#1001``) or GID and decodes the
response once into typed schemas.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from profitguard.config import Settings, get_settings
from profitguard.schemas import OrderLineItem, ShopifyOrder

logger = logging.getLogger(__name__)

_ORDER_FIELDS = """
    id
    name
    lineItems(first: $lineItems) {
      edges {
        node {
          id
          title
          quantity
          originalUnitPriceSet { shopMoney { amount } }
          variant { inventoryItem { unitCost { amount } } }
        }
      }
    }
"""

ORDER_BY_NAME_QUERY = (
    "query GetOrder($orderNumber: String!, $lineItems: Int!) {\n"
    "  orders(first: 1, query: $orderNumber) { edges { node {" + _ORDER_FIELDS + "} } }\n"
    "}"
)

ORDER_BY_ID_QUERY = (
    "query GetOrderById($id: ID!, $lineItems: Int!) {\n"
    "  order(id: $id) {" + _ORDER_FIELDS + "}\n"
    "}"
)


class OrderNotFoundError(LookupError):
    """No order matched the lookup."""


class ShopifyAPIError(RuntimeError):
    """The Admin API could not be reached or rejected the query."""


def format_order_name(order_number: str) -> str:
    """Normalise merchant input to a Shopify order name, e.g. ``1001`` → ``#1001``."""
    name = (order_number or "").strip()
    if not name:
        raise ValueError("Please enter an order number.")
    if not name.startswith("#"):
        name = f"#{name}"
    return name


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def parse_order(node: dict) -> ShopifyOrder:
    """Decode an ``Order`` GraphQL node."""
    line_items = []
    for edge in _dig(node, "lineItems", "edges") or []:
        item = edge.get("node") or {}
        line_items.append(OrderLineItem(
            id=item["id"],
            title=item.get("title") or "",
            quantity=item.get("quantity") or 0,
            unit_price=_dig(item, "originalUnitPriceSet", "shopMoney", "amount") or "0",
            unit_cost=_dig(item, "variant", "inventoryItem", "unitCost", "amount"),
        ))
    return ShopifyOrder(id=node["id"], name=node.get("name") or "", line_items=line_items)


def _decode_order(node: Any) -> ShopifyOrder:
    try:
        return parse_order(node)
    except (KeyError, TypeError, AttributeError, ValidationError) as e:
        logger.error(f"Unexpected Shopify order payload: {e!r}")
        raise ShopifyAPIError(f"Unexpected Shopify order payload: {e!r}") from e


class ShopifyOrderClient:
    """Reads orders from one shop through the Admin GraphQL API."""

    def __init__(
        self,
        shop_url: str,
        access_token: str,
        api_version: str = "2025-01",
        line_items_limit: int = 20,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        shop = shop_url.removeprefix("https://").removeprefix("http://").rstrip("/")
        self.endpoint = f"https://{shop}/admin/api/{api_version}/graphql.json"
        self.line_items_limit = line_items_limit
        self._access_token = access_token
        self._timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ShopifyOrderClient":
        s = settings or get_settings()
        return cls(
            shop_url=s.shopify_shop_url,
            access_token=s.shopify_access_token,
            api_version=s.shopify_api_version,
            line_items_limit=s.shopify_line_items_limit,
            timeout=s.shopify_timeout_seconds,
        )

    async def _execute(self, query: str, variables: dict) -> dict:
        headers = {
            "X-Shopify-Access-Token": self._access_token,
            "Content-Type": "application/json",
        }
        payload = {"query": query, "variables": variables}
        try:
            if self._client is not None:
                resp = await self._client.post(self.endpoint, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.post(self.endpoint, json=payload, headers=headers)
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Shopify request failed: {e}")
            raise ShopifyAPIError(f"Shopify request failed: {e}") from e

        if not isinstance(body, dict):
            logger.error(f"Unexpected Shopify response: {body!r}")
            raise ShopifyAPIError("Unexpected Shopify response")
        if body.get("errors"):
            errors = body["errors"] if isinstance(body["errors"], list) else [body["errors"]]
            messages = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err) for err in errors
            )
            logger.error(f"Shopify GraphQL errors: {messages}")
            raise ShopifyAPIError(f"Shopify GraphQL errors: {messages}")
        data = body.get("data") or {}
        if not isinstance(data, dict):
            logger.error(f"Unexpected Shopify data: {data!r}")
            raise ShopifyAPIError("Unexpected Shopify response")
        return data

    async def find_order_by_name(self, order_number: str) -> ShopifyOrder:
        """Find an order by merchant-entered number, with or without ``#``."""
        name = format_order_name(order_number)
        data = await self._execute(
            ORDER_BY_NAME_QUERY,
            {"orderNumber": f"name:{name}", "lineItems": self.line_items_limit},
        )
        edges = _dig(data, "orders", "edges") or []
        node = _dig(edges[0], "node") if isinstance(edges, list) and edges else None
        if not node:
            raise OrderNotFoundError(f'Could not find an order with the name "{name}".')
        order = _decode_order(node)
        logger.info(f"Loaded order {order.name} with {len(order.line_items)} line item(s)")
        return order

    async def get_order(self, order_id: str) -> ShopifyOrder:
        """Fetch an order by its GID, e.g. ``gid://shopify/Order/123``."""
        data = await self._execute(
            ORDER_BY_ID_QUERY,
            {"id": order_id, "lineItems": self.line_items_limit},
        )
        node = data.get("order")
        if not node:
            raise OrderNotFoundError(f'Could not find an order with the id "{order_id}".')
        return _decode_order(node)


def get_order_source() -> ShopifyOrderClient:
    """Dependency: order source for the configured shop."""
    return ShopifyOrderClient.from_settings()
