from __future__ import annotations

import json
import logging
from typing import Optional
from urllib.parse import quote, unquote, urlsplit

from .crush import DEFAULT_MAX_SUBSTRING_LENGTH, crush, uncrush
from .errors import DecodeError
from .models import CELL_COUNT, MAX_ITEM_LENGTH, MAX_TITLE_LENGTH, Card, SharedCard

logger = logging.getLogger(__name__)

SHARE_PATH = "/play"
SHARE_PARAM = "data"


def shareable_json(card: Card) -> str:
    payload = {"title": card.title, "items": list(card.cells)}
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def encode(card: Card, *, max_substring_length: int = DEFAULT_MAX_SUBSTRING_LENGTH) -> str:
    """Token carrying the card's title and cells in their current order."""
    crushed = crush(shareable_json(card), max_substring_length=max_substring_length)
    return quote(crushed, safe="!*'()")


def _parse(token: str) -> object:
    try:
        text = uncrush(unquote(token, errors="strict"))
    except UnicodeDecodeError as exc:
        raise DecodeError("Token is not valid percent-encoded UTF-8") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Token does not decode to JSON: {exc.msg}") from exc
    except RecursionError as exc:
        raise DecodeError("Token nests too deeply") from exc


def decode(token: str) -> SharedCard:
    if not token:
        raise DecodeError("Token is empty")
    data = _parse(token)
    if not isinstance(data, dict):
        raise DecodeError("Decoded card data is not an object")

    title = data.get("title")
    items = data.get("items")
    if not isinstance(title, str) or not title.strip():
        raise DecodeError("Decoded card data has no title")
    if not isinstance(items, list) or len(items) != CELL_COUNT:
        raise DecodeError(f"Decoded card data must have exactly {CELL_COUNT} items")

    return SharedCard(
        title=title[:MAX_TITLE_LENGTH],
        items=tuple(str(item)[:MAX_ITEM_LENGTH] for item in items),
    )


def is_valid(token: str) -> bool:
    try:
        shared = decode(token)
    except DecodeError as exc:
        logger.debug("Rejected share token: %s", exc)
        return False
    return len(shared.title) > 0 and len(shared.items) == CELL_COUNT


def share_url(card: Card, base_url: str, **kwargs) -> str:
    return f"{base_url.rstrip('/')}{SHARE_PATH}?{SHARE_PARAM}={encode(card, **kwargs)}"


def token_from_url(url: str) -> Optional[str]:
    """Raw (still percent-encoded) `data` query value of a share link."""
    query = urlsplit(url).query
    for pair in query.split("&"):
        key, sep, value = pair.partition("=")
        if sep and key == SHARE_PARAM:
            return value
    return None


def coerce_token(value: str) -> str:
    """Accept either a bare token or a full share link."""
    value = value.strip()
    if "://" in value or value.startswith(SHARE_PATH + "?"):
        token = token_from_url(value)
        if token is None:
            raise DecodeError("Share link has no data parameter")
        return token
    return value
