"""
Conversation rules, evaluated in a fixed order for every chat turn.

Each rule looks at the turn and either answers (returns a Reply) or passes
(returns None). The completion rule at the end always answers.
"""
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from .assistant import CompletionClient, build_system_prompt
from .extraction import extract_order_fields
from .orders import OrderRecord, describe_missing
from .sizing import normalize_size
from .storefront import find_product, find_variant, format_price, match_product


logger = logging.getLogger(__name__)


class Reply:
    def __init__(self, text: str, status: int = 200, reset_order: bool = False):
        self.text = text
        self.status = status
        self.reset_order = reset_order
        self.rule = ""


class ChatTurn:
    def __init__(
        self,
        message: str,
        products: List[Dict[str, Any]],
        record: OrderRecord,
        completions: CompletionClient,
        checkout_url: Callable[[Dict[str, Any]], str],
        explicit: Optional[Dict[str, Any]] = None,
        size_suggestion: Optional[str] = None,
        session_id: str = "",
    ):
        self.message = message
        self.products = products
        self.record = record
        self.completions = completions
        self.checkout_url = checkout_url
        self.explicit = explicit or {}
        self.size_suggestion = size_suggestion
        self.session_id = session_id

    def has_form_fields(self) -> bool:
        return any((str(v).strip() if v is not None else "") for v in self.explicit.values())


def norm(s: str) -> str:
    s = (s or "").lower()
    s = re.sub(r"[^\w\s']+", " ", s)
    return re.sub(r"\s+", " ", s).strip()


# =========================
# Small talk / greetings
# =========================
SMALL_TALK = {
    "how are you": "I'm doing great, thanks for asking! Looking for something to wear today?",
    "how are you doing": "I'm doing great, thanks for asking! Looking for something to wear today?",
    "what's up": "All good here! Want me to show you what's in stock?",
    "thank you": "You're welcome! Let me know if there's anything else I can help with.",
    "thanks": "You're welcome! Let me know if there's anything else I can help with.",
    "bye": "Goodbye! Come back anytime.",
    "goodbye": "Goodbye! Come back anytime.",
    "who are you": "I'm the store's shopping assistant. I can help you pick a product, find your size and place an order.",
    "are you a bot": "I'm the store's shopping assistant. I can help you pick a product, find your size and place an order.",
    "what can you do": (
        "I can show you our products, check which sizes are in stock, suggest a size from your height "
        "and prepare your checkout link."
    ),
}
# substring matches only for short messages that carry no order details,
# so "thanks, my name is ..." still reaches the order rule
SMALL_TALK_MAX_WORDS = 6

GREETINGS = {
    "hi", "hii", "hello", "hey", "hey there", "hello there", "hi there", "yo",
    "good morning", "good afternoon", "good evening", "salam", "marhaba",
}
GREETING_REPLY = "Hi there! 👋 How can I help you today? Ask me about our products, sizes or place an order."


def carries_order_details(turn: ChatTurn) -> bool:
    found = extract_order_fields(turn.message, turn.record, turn.products, free_text_address=False)
    return found != turn.record


def small_talk(turn: ChatTurn) -> Optional[Reply]:
    if turn.has_form_fields():
        return None
    nq = norm(turn.message)
    if nq in SMALL_TALK:
        return Reply(SMALL_TALK[nq])
    if len(nq.split()) <= SMALL_TALK_MAX_WORDS and not carries_order_details(turn):
        for phrase, answer in SMALL_TALK.items():
            if re.search(rf"\b{re.escape(phrase)}\b", nq):
                return Reply(answer)
    return None


def greeting(turn: ChatTurn) -> Optional[Reply]:
    if turn.has_form_fields():
        return None
    if norm(turn.message) in GREETINGS:
        return Reply(GREETING_REPLY)
    return None


# =========================
# Product inquiry
# =========================
INQUIRY_RE = re.compile(
    r"\b(in stock|out of stock|available|availability|do you (?:have|sell|carry)|how much|prices?|sizes)\b",
    re.IGNORECASE,
)


def product_inquiry(turn: ChatTurn) -> Optional[Reply]:
    if turn.has_form_fields() or not INQUIRY_RE.search(turn.message):
        return None

    product = match_product(turn.products, turn.message)
    if product is None:
        titles = ", ".join(p["title"] for p in turn.products)
        text = "Sorry, I couldn't find that product."
        if titles:
            text += f" Here's what we currently have: {titles}."
        return Reply(text)

    in_stock = [v for v in product["variants"] if v["available"]]
    if not in_stock:
        return Reply(f"Sorry, {product['title']} is currently out of stock.")
    sizes = ", ".join(
        f"{v['title']} ({format_price(v)})" if v.get("price") else v["title"] for v in in_stock
    )
    return Reply(f"Yes! {product['title']} is in stock in: {sizes}.")


# =========================
# Order collection / checkout
# =========================
def merge_explicit_fields(record: OrderRecord, explicit: Dict[str, Any], size_suggestion: Optional[str]) -> OrderRecord:
    """Values typed into the order form replace whatever was collected from chat."""
    updates = {}
    for field in ("name", "phone", "address"):
        value = (explicit.get(field) or "").strip()
        if value:
            updates[field] = value
    product = (explicit.get("selectedProduct") or "").strip()
    if product:
        updates["product"] = product
    size = (explicit.get("selectedSize") or "").strip()
    if size:
        updates["size"] = normalize_size(size) or size
    elif size_suggestion and not record.size:
        updates["size"] = size_suggestion
    return record.model_copy(update=updates) if updates else record


def order(turn: ChatTurn) -> Optional[Reply]:
    record = extract_order_fields(turn.message, turn.record, turn.products)
    turn.record = record

    if not record.is_complete():
        return None

    product = find_product(turn.products, record.product)
    if product is None:
        logger.info("order product %r not in catalog", record.product)
        turn.record = record.model_copy(update={"product": None})
        return Reply(f'Product "{record.product}" not found.', status=404)

    variant = find_variant(product, record.size)
    if variant is None or not variant["available"]:
        logger.info("size %s unavailable for %s", record.size, product["title"])
        turn.record = record.model_copy(update={"size": None})
        return Reply(f"Size {record.size} is out of stock for {product['title']}.", status=404)

    checkout_url = turn.checkout_url(variant)
    logger.info("checkout ready for session %s: %s", turn.session_id, checkout_url)
    return Reply(
        f"Thanks {record.name}! Your order for {product['title']} (Size {record.size}) is ready.\n\n"
        f"📦 Address: {record.address}\n"
        f"📞 Phone: {record.phone}\n\n"
        f"Click below to complete your purchase:\n{checkout_url}",
        reset_order=True,
    )


# =========================
# Completion API fallback
# =========================
def completion(turn: ChatTurn) -> Optional[Reply]:
    system_prompt = build_system_prompt(turn.products, turn.record, turn.size_suggestion)
    text = turn.completions.complete(system_prompt, turn.message)
    if turn.record.is_started() and not turn.record.is_complete():
        text = f"{text}\n\nTo complete your order, please share your: {describe_missing(turn.record)}."
    return Reply(text)


RULES: List[Tuple[str, Callable[[ChatTurn], Optional[Reply]]]] = [
    ("small_talk", small_talk),
    ("greeting", greeting),
    ("product_inquiry", product_inquiry),
    ("order", order),
    ("completion", completion),
]


def run_rules(turn: ChatTurn, rules=RULES) -> Reply:
    # form fields land in the record whichever rule answers
    turn.record = merge_explicit_fields(turn.record, turn.explicit, turn.size_suggestion)
    for name, rule in rules:
        reply = rule(turn)
        if reply is not None:
            reply.rule = name
            logger.info("rule %s answered (status %d)", name, reply.status)
            return reply
    raise RuntimeError("no conversation rule produced a reply")
