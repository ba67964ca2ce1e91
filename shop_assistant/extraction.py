"""
Order field extraction from free chat text.

Every extractor is a plain function of the message (and the catalog, for
products). `extract_order_fields` only calls an extractor when the field is
still empty, so a value collected on an earlier turn is never replaced.
Within a field the rules are tried top to bottom and the first hit wins.
"""
import re
from typing import Any, Dict, List, Optional

from .orders import OrderRecord
from .sizing import normalize_size, size_for_height
from .storefront import match_product


# =========================
# Name
# =========================
_NAME_STRONG_RE = re.compile(
    r"\b(?:my name is|my name's|name\s*:)\s*([A-Za-z]+(?:\s+[A-Za-z]+){0,3})",
    re.IGNORECASE,
)
# "I'm" / "this is" only count when followed by capitalized words.
_NAME_WEAK_RE = re.compile(
    r"\b(?i:i am|i'm|this is)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+){0,3})\b"
)
_NAME_ONLY_RE = re.compile(r"^[A-Z][A-Za-z'-]+(?:\s+[A-Z][A-Za-z'-]+){1,3}$")
_NAME_STOPWORDS = {
    "and", "my", "phone", "number", "address", "i", "im", "from", "size",
    "with", "please", "the", "want", "would", "like", "need",
}


def _trim_name(raw: str) -> Optional[str]:
    kept = []
    for token in raw.split():
        if token.lower() in _NAME_STOPWORDS:
            break
        kept.append(token)
    return " ".join(kept) or None


def extract_name(text: str, products: Optional[List[Dict[str, Any]]] = None) -> Optional[str]:
    m = _NAME_STRONG_RE.search(text)
    if m:
        name = _trim_name(m.group(1))
        if name:
            return name
    m = _NAME_WEAK_RE.search(text)
    if m:
        name = _trim_name(m.group(1))
        if name and not match_product(products or [], name):
            return name
    bare = text.strip().rstrip(".!")
    if _NAME_ONLY_RE.match(bare) and not match_product(products or [], bare):
        if not any(t.lower() in _NAME_STOPWORDS for t in bare.split()):
            return bare
    return None


# =========================
# Phone
# =========================
_PHONE_TRIGGER_RE = re.compile(
    r"\b(?:phone|number|mobile|tel|whatsapp|call me (?:at|on))\b\D{0,20}?(\+?\d[\d\s().-]{5,22}\d)",
    re.IGNORECASE,
)
_PHONE_ANY_RE = re.compile(r"(?<![\w+])(\+?\d[\d\s-]{5,20}\d)(?!\w)")


def _clean_phone(raw: str) -> Optional[str]:
    digits = re.sub(r"\D", "", raw)
    if not 7 <= len(digits) <= 15:
        return None
    return ("+" if raw.strip().startswith("+") else "") + digits


def extract_phone(text: str) -> Optional[str]:
    m = _PHONE_TRIGGER_RE.search(text)
    if m:
        phone = _clean_phone(m.group(1))
        if phone:
            return phone
    for m in _PHONE_ANY_RE.finditer(text):
        phone = _clean_phone(m.group(1))
        if phone:
            return phone
    return None


# =========================
# Address
# =========================
_ADDRESS_TRIGGER_RE = re.compile(
    r"\b(?:my address is|address is|address\s*:|ship (?:it )?to|deliver (?:it )?to|i live (?:at|in))\s*[:-]?\s*(.+)",
    re.IGNORECASE,
)
_ADDRESS_CUT_RE = re.compile(r"\s*(?:,\s*)?(?:\band\s+)?\bmy (?:phone|number|name|size)\b.*$", re.IGNORECASE)


def extract_address(text: str, free_text: bool = False) -> Optional[str]:
    """
    `free_text` enables the fallback that takes the whole message as the
    address. It is only switched on when the address is the last thing the
    order is waiting for.
    """
    m = _ADDRESS_TRIGGER_RE.search(text)
    if m:
        address = _ADDRESS_CUT_RE.sub("", m.group(1).splitlines()[0]).strip().rstrip(".")
        if address:
            return address
    if free_text:
        bare = text.strip()
        if len(bare) >= 10 and re.search(r"[A-Za-z]{3,}", bare):
            return bare
    return None


# =========================
# Size
# =========================
_SIZE_WORD_RE = re.compile(r"\bsize\s*[:-]?\s*(2xl|xxl|xl|small|medium|large|l|m|s)\b", re.IGNORECASE)
_SIZE_TOKEN_RE = re.compile(r"(?<![\w'’.-])(2XL|XXL|XL)(?![\w'’-]|\.\w)")
# single letters only at the start of the message or after a choice word,
# so initials ("Ali M Harake") and times ("9 A.M.") are left alone
_SIZE_LETTER_RE = re.compile(
    r"(?:^\s*|\b(?i:take|want|need|get|wear|in|an?|the)\s+)(S|M|L)(?![\w'’-]|\.\w)"
)
_HEIGHT_RES = [
    re.compile(r"(?<!\d)(\d{3})\s*(?:cm|centimet)", re.IGNORECASE),
    re.compile(r"\b(?:height|tall|i am|i'm)\D{0,12}(?<!\d)(\d{3})(?!\d)", re.IGNORECASE),
    re.compile(r"(?<!\d)(\d{3})(?!\d)\s*(?:tall)\b", re.IGNORECASE),
]


def extract_height(text: str) -> Optional[int]:
    for rx in _HEIGHT_RES:
        m = rx.search(text)
        if m:
            height = int(m.group(1))
            if 100 <= height <= 250:
                return height
    return None


def extract_size(text: str) -> Optional[str]:
    m = _SIZE_WORD_RE.search(text)
    if m:
        return normalize_size(m.group(1))
    for rx in (_SIZE_TOKEN_RE, _SIZE_LETTER_RE):
        m = rx.search(text)
        if m:
            return normalize_size(m.group(1))
    height = extract_height(text)
    if height is not None:
        return size_for_height(height)
    return None


# =========================
# Product
# =========================
def extract_product(text: str, products: List[Dict[str, Any]]) -> Optional[str]:
    p = match_product(products, text)
    return p["title"] if p else None


# =========================
# Record update
# =========================
def extract_order_fields(
    text: str,
    record: OrderRecord,
    products: List[Dict[str, Any]],
    free_text_address: bool = True,
) -> OrderRecord:
    text = text or ""
    found: Dict[str, Optional[str]] = {}

    if not record.name:
        found["name"] = extract_name(text, products)
    if not record.phone:
        found["phone"] = extract_phone(text)
    if not record.product:
        found["product"] = extract_product(text, products)
    if not record.size:
        found["size"] = extract_size(text)
    if not record.address:
        waiting_on_address = free_text_address and record.missing() == ["address"]
        found["address"] = extract_address(text, free_text=waiting_on_address)

    updates = {k: v for k, v in found.items() if v}
    return record.model_copy(update=updates) if updates else record
