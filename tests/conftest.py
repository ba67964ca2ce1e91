import pytest

from shop_assistant.orders import OrderRecord
from shop_assistant.storefront import StorefrontError


def variant(vid, title, available=True, price="25.00"):
    return {
        "id": f"gid://shopify/ProductVariant/{vid}",
        "title": title,
        "available": available,
        "price": price,
        "currency": "USD",
    }


@pytest.fixture
def catalog():
    return [
        {
            "id": "gid://shopify/Product/1",
            "title": "Black Hoodie",
            "description": "Heavy cotton hoodie",
            "variants": [
                variant(1001, "S"),
                variant(1002, "M"),
                variant(1003, "L", available=False),
                variant(1004, "XL"),
            ],
        },
        {
            "id": "gid://shopify/Product/2",
            "title": "White Tee",
            "description": "",
            "variants": [
                variant(2001, "M / White", price="15.00"),
                variant(2002, "2XL / White", price="17.00"),
            ],
        },
        {
            "id": "gid://shopify/Product/3",
            "title": "Rain Jacket",
            "description": "",
            "variants": [variant(3001, "M", available=False)],
        },
    ]


class FakeStorefront:
    domain = "shop.example.com"

    def __init__(self, products, fail=False):
        self.products = products
        self.fail = fail
        self.fetches = 0
        self.carts = []

    def fetch_products(self):
        self.fetches += 1
        if self.fail:
            raise StorefrontError("storefront down")
        return self.products

    def create_checkout_url(self, variant_id):
        self.carts.append(variant_id)
        return "https://shop.example.com/cart/c/abc123"


class FakeCompletions:
    enabled = True

    def __init__(self, text="Here is what I found."):
        self.text = text
        self.calls = []

    def complete(self, system_prompt, message):
        self.calls.append((system_prompt, message))
        return self.text


@pytest.fixture
def fake_storefront(catalog):
    return FakeStorefront(catalog)


@pytest.fixture
def fake_completions():
    return FakeCompletions()


@pytest.fixture
def full_record():
    return OrderRecord(
        name="Ali Harake",
        phone="0791234567",
        address="12 Main Street, Beirut",
        product="Black Hoodie",
        size="M",
    )
