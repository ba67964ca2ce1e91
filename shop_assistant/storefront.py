import logging
import re
from typing import Any, Dict, List, Optional

import requests

from .sizing import normalize_size


logger = logging.getLogger(__name__)


class StorefrontError(RuntimeError):
    pass


PRODUCTS_QUERY = """
query Products($first: Int!, $variantsFirst: Int!) {
  products(first: $first) {
    edges {
      node {
        id
        title
        description
        variants(first: $variantsFirst) {
          edges {
            node {
              id
              title
              availableForSale
              price {
                amount
                currencyCode
              }
            }
          }
        }
      }
    }
  }
}
"""

CART_CREATE_MUTATION = """
mutation CartCreate($lines: [CartLineInput!]) {
  cartCreate(input: {lines: $lines}) {
    cart {
      id
      checkoutUrl
    }
    userErrors {
      field
      message
    }
  }
}
"""


# =========================
# Client
# =========================
class StorefrontClient:
    def __init__(
        self,
        domain: str,
        token: str,
        api_version: str = "2024-07",
        timeout: float = 20,
        products_first: int = 10,
        variants_first: int = 10,
    ):
        self.domain = domain
        self.token = token
        self.api_version = api_version
        self.timeout = timeout
        self.products_first = products_first
        self.variants_first = variants_first

    @property
    def endpoint(self) -> str:
        return f"https://{self.domain}/api/{self.api_version}/graphql.json"

    def _post(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        try:
            r = requests.post(
                self.endpoint,
                headers={
                    "X-Shopify-Storefront-Access-Token": self.token,
                    "Content-Type": "application/json",
                },
                json={"query": query, "variables": variables},
                timeout=self.timeout,
            )
            r.raise_for_status()
            payload = r.json()
        except requests.RequestException as e:
            raise StorefrontError(f"storefront request failed: {e}") from e
        except ValueError as e:
            raise StorefrontError("storefront returned invalid JSON") from e

        if payload.get("errors"):
            messages = "; ".join(str(err.get("message", err)) for err in payload["errors"])
            raise StorefrontError(f"storefront query failed: {messages}")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise StorefrontError("storefront response has no data")
        return data

    def fetch_products(self) -> List[Dict[str, Any]]:
        data = self._post(
            PRODUCTS_QUERY,
            {"first": self.products_first, "variantsFirst": self.variants_first},
        )
        try:
            edges = data["products"]["edges"]
            products = [normalize_product(e["node"]) for e in edges]
        except (KeyError, TypeError) as e:
            raise StorefrontError(f"unexpected products payload: {e}") from e
        logger.info("fetched %d products from %s", len(products), self.domain)
        return products

    def create_checkout_url(self, variant_id: str) -> str:
        data = self._post(
            CART_CREATE_MUTATION,
            {"lines": [{"merchandiseId": variant_id, "quantity": 1}]},
        )
        result = data.get("cartCreate") or {}
        user_errors = result.get("userErrors") or []
        if user_errors:
            raise StorefrontError("cartCreate failed: " + "; ".join(e.get("message", "") for e in user_errors))
        url = ((result.get("cart") or {}).get("checkoutUrl") or "").strip()
        if not url:
            raise StorefrontError("cartCreate returned no checkoutUrl")
        return url


# =========================
# Normalization
# =========================
def normalize_product(node: Dict[str, Any]) -> Dict[str, Any]:
    variants = []
    for edge in (node.get("variants") or {}).get("edges") or []:
        v = edge["node"]
        price = v.get("price") or {}
        variants.append({
            "id": v["id"],
            "title": (v.get("title") or "").strip(),
            "available": bool(v.get("availableForSale")),
            "price": str(price.get("amount") or ""),
            "currency": price.get("currencyCode") or "",
        })
    return {
        "id": node["id"],
        "title": (node.get("title") or "").strip(),
        "description": (node.get("description") or "").strip(),
        "variants": variants,
    }


# =========================
# Lookup helpers
# =========================
def find_product(products: List[Dict[str, Any]], title: str) -> Optional[Dict[str, Any]]:
    wanted = (title or "").strip().lower()
    if not wanted:
        return None
    for p in products:
        if p["title"].lower() == wanted:
            return p
    return None


def match_product(products: List[Dict[str, Any]], text: str) -> Optional[Dict[str, Any]]:
    """First product, in catalog order, whose title appears in the text."""
    hay = (text or "").lower()
    for p in products:
        title = p["title"].lower()
        if title and title in hay:
            return p
    return None


def find_variant(product: Dict[str, Any], size: str) -> Optional[Dict[str, Any]]:
    """
    Variant for a size. An exact option token ("M" in "M / Black") wins over
    a plain substring match so "L" never resolves to an "XL" variant when an
    "L" variant exists.
    """
    wanted = normalize_size(size) or (size or "").strip()
    if not wanted:
        return None
    variants = product.get("variants") or []
    for v in variants:
        tokens = [t for t in re.split(r"[\s/,|-]+", v["title"]) if t]
        if any(normalize_size(t) == wanted for t in tokens):
            return v
    for v in variants:
        if wanted.lower() in v["title"].lower():
            return v
    return None


def variant_numeric_id(variant_id: str) -> str:
    """gid://shopify/ProductVariant/4242?x=1 -> 4242"""
    tail = (variant_id or "").rsplit("/", 1)[-1].split("?", 1)[0]
    if not tail.isdigit():
        raise StorefrontError(f"variant id has no numeric suffix: {variant_id!r}")
    return tail


def permalink_checkout_url(domain: str, variant_id: str, quantity: int = 1) -> str:
    return f"https://{domain}/cart/{variant_numeric_id(variant_id)}:{quantity}"


def format_price(variant: Dict[str, Any]) -> str:
    return f"${variant['price']}" if variant.get("price") else ""


def format_catalog(products: List[Dict[str, Any]]) -> str:
    lines = []
    for p in products:
        sizes = ", ".join(v["title"] for v in p["variants"])
        prices = ", ".join(format_price(v) for v in p["variants"] if v.get("price"))
        lines.append(f"{p['title']} - Available sizes: {sizes} - Prices: {prices}")
    return "\n\n".join(lines)
