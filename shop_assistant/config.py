import os


# =========================
# Secrets
# =========================
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "").strip()
SHOPIFY_STOREFRONT_TOKEN = os.environ.get("SHOPIFY_STOREFRONT_TOKEN", "").strip()


# =========================
# Store / API
# =========================
SHOPIFY_DOMAIN = os.environ.get("SHOPIFY_DOMAIN", "rx3brg-0q.myshopify.com").strip()
SHOPIFY_API_VERSION = os.environ.get("SHOPIFY_API_VERSION", "2024-07").strip()
OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-3.5-turbo").strip()

ALLOWED_ORIGIN = os.environ.get("ALLOWED_ORIGIN", "https://aliharake.pro").strip()

# "permalink" -> https://<domain>/cart/<variant>:1, "cart" -> cartCreate mutation
CHECKOUT_STRATEGY = os.environ.get("CHECKOUT_STRATEGY", "permalink").strip().lower()

SESSION_TTL_SECONDS = int(os.environ.get("SESSION_TTL_SECONDS", "1800"))
HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", "20"))

PRODUCTS_FIRST = 10
VARIANTS_FIRST = 10
