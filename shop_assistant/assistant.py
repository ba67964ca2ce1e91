import logging
from typing import Any, Dict, List, Optional

from openai import OpenAI

from .orders import OrderRecord, describe_missing
from .sizing import SIZE_CHART
from .storefront import format_catalog


logger = logging.getLogger(__name__)

FALLBACK_REPLY = (
    "I'm here to help you shop! Tell me which product you like, your size "
    "(or your height in cm), and I'll get your order ready."
)


def build_system_prompt(
    products: List[Dict[str, Any]],
    record: Optional[OrderRecord] = None,
    size_suggestion: Optional[str] = None,
) -> str:
    parts = [
        "You are a helpful shopping assistant. Available products:",
        format_catalog(products) or "(no products available right now)",
        f"If the user provides height, recommend size ({SIZE_CHART}).",
        "If they provide name, address, phone, and product/size, confirm and give them the checkout URL.",
        "Only talk about the products listed above; never invent products, sizes or prices.",
    ]
    if size_suggestion:
        parts.append(f"Based on the height the user gave, the recommended size is {size_suggestion}.")
    if record is not None and record.is_started():
        collected = ", ".join(
            f"{field}: {value}" for field, value in record.model_dump().items() if value
        )
        parts.append(f"Order details collected so far: {collected}.")
        if not record.is_complete():
            parts.append(f"Still needed to place the order: {describe_missing(record)}. Ask for them politely.")
    return "\n\n".join(parts)


class CompletionClient:
    def __init__(self, api_key: str, model: str = "gpt-3.5-turbo"):
        self.model = model
        self.client = OpenAI(api_key=api_key) if api_key else None

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def complete(self, system_prompt: str, message: str) -> str:
        if self.client is None:
            logger.warning("OPENAI_API_KEY is not set, returning fallback reply")
            return FALLBACK_REPLY

        resp = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": message},
            ],
        )
        return (resp.choices[0].message.content or "").strip()
