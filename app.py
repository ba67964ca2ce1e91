import logging
from typing import Any, Dict, Optional, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from shop_assistant.assistant import CompletionClient
from shop_assistant.config import (
    ALLOWED_ORIGIN,
    CHECKOUT_STRATEGY,
    HTTP_TIMEOUT,
    OPENAI_API_KEY,
    OPENAI_MODEL,
    PRODUCTS_FIRST,
    SESSION_TTL_SECONDS,
    SHOPIFY_API_VERSION,
    SHOPIFY_DOMAIN,
    SHOPIFY_STOREFRONT_TOKEN,
    VARIANTS_FIRST,
)
from shop_assistant.orders import SessionStore
from shop_assistant.rules import ChatTurn, run_rules
from shop_assistant.sizing import parse_height, size_for_height
from shop_assistant.storefront import StorefrontClient, permalink_checkout_url


logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# =========================
# App / Config
# =========================
app = FastAPI(title="Storefront Shopping Assistant")

CHAT_PATH = "/api/chatbot"
GENERIC_ERROR = "Something went wrong processing the request."

CORS_HEADERS = {
    "Access-Control-Allow-Origin": ALLOWED_ORIGIN,
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

storefront = StorefrontClient(
    SHOPIFY_DOMAIN,
    SHOPIFY_STOREFRONT_TOKEN,
    api_version=SHOPIFY_API_VERSION,
    timeout=HTTP_TIMEOUT,
    products_first=PRODUCTS_FIRST,
    variants_first=VARIANTS_FIRST,
)
completions = CompletionClient(OPENAI_API_KEY, model=OPENAI_MODEL)
sessions = SessionStore(ttl_seconds=SESSION_TTL_SECONDS)

if not SHOPIFY_STOREFRONT_TOKEN:
    logger.warning("SHOPIFY_STOREFRONT_TOKEN not found. Catalog requests will be rejected.")


@app.middleware("http")
async def cors_headers(request: Request, call_next):
    # preflight is always answered here, whatever the payload
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    if request.url.path == CHAT_PATH and request.method != "POST":
        return JSONResponse(status_code=405, content={"message": "Method not allowed"}, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


@app.exception_handler(RequestValidationError)
async def invalid_body_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


class ChatIn(BaseModel):
    message: Optional[str] = None
    sessionId: Optional[str] = None
    height: Optional[Union[int, float, str]] = None
    name: Optional[str] = None
    phone: Optional[Union[str, int]] = None
    address: Optional[str] = None
    selectedProduct: Optional[str] = None
    selectedSize: Optional[str] = None


# =========================
# Helpers
# =========================
def checkout_url_for(variant: Dict[str, Any]) -> str:
    if CHECKOUT_STRATEGY == "cart":
        return storefront.create_checkout_url(variant["id"])
    return permalink_checkout_url(storefront.domain, variant["id"])


def explicit_fields(inp: ChatIn) -> Dict[str, Any]:
    return {
        "name": inp.name,
        "phone": str(inp.phone) if inp.phone is not None else None,
        "address": inp.address,
        "selectedProduct": inp.selectedProduct,
        "selectedSize": inp.selectedSize,
    }


# =========================
# API Endpoints
# =========================
@app.get("/api/health")
def health():
    return {
        "ok": True,
        "storefront": bool(SHOPIFY_STOREFRONT_TOKEN),
        "llm": completions.enabled,
        "sessions": len(sessions),
    }


@app.delete("/api/sessions/{session_id}")
def clear_session(session_id: str):
    return {"ok": True, "cleared": sessions.clear(session_id)}


@app.post(CHAT_PATH)
def chat(inp: ChatIn):
    message = (inp.message or "").strip()
    if not message:
        return JSONResponse(status_code=400, content={"error": "Message is required"})

    session_id = (inp.sessionId or "").strip() or sessions.new_session_id()

    try:
        sessions.purge_expired()
        products = storefront.fetch_products()

        height = parse_height(inp.height)
        size_suggestion = size_for_height(height) if height is not None else None

        turn = ChatTurn(
            message=message,
            products=products,
            record=sessions.load(session_id),
            completions=completions,
            checkout_url=checkout_url_for,
            explicit=explicit_fields(inp),
            size_suggestion=size_suggestion,
            session_id=session_id,
        )
        reply = run_rules(turn)

        if reply.reset_order or not turn.record.is_started():
            sessions.clear(session_id)
        else:
            sessions.save(session_id, turn.record)
    except Exception:
        logger.exception("chat request failed (session %s)", session_id)
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})

    body: Dict[str, Any] = {"reply": reply.text, "sessionId": session_id}
    if inp.height is not None:
        body["sizeSuggestion"] = size_suggestion
    return JSONResponse(status_code=reply.status, content=body)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
