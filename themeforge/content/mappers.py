"""List-slot item mappers.

Content for list slots arrives in many loose shapes (AI output, blueprint
literals, hand-written snapshots). Each mapper normalises one kind of item
into a dict with a fixed key set so templates can rely on every key being
present. Items that are neither dicts nor strings are dropped.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from themeforge.utils import slugify

MAX_SERVICES = 12
MAX_TESTIMONIALS = 6
DEFAULT_RATING = 5


def _pick(item: dict[str, Any], *keys: str, default: str = "") -> str:
    """Return the first non-empty string value among *keys*."""
    for key in keys:
        value = item.get(key)
        if value is None or isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return default


def _as_dict(item: Any, text_key: str) -> Optional[dict[str, Any]]:
    if isinstance(item, dict):
        return item
    if isinstance(item, str) and item.strip():
        return {text_key: item.strip()}
    return None


def map_services(items: list[Any]) -> list[dict[str, Any]]:
    mapped: list[dict[str, Any]] = []
    for raw in items:
        item = _as_dict(raw, "name")
        if item is None:
            continue
        name = _pick(item, "name", "title", default="Service")
        url = _pick(item, "url")
        if not url:
            url = "#" + (_pick(item, "slug") or slugify(name))
        mapped.append(
            {
                "name": name,
                "description": _pick(item, "description", "summary"),
                "icon": _pick(item, "icon"),
                "url": url,
            }
        )
        if len(mapped) == MAX_SERVICES:
            break
    return mapped


def map_testimonials(items: list[Any]) -> list[dict[str, Any]]:
    mapped: list[dict[str, Any]] = []
    for raw in items:
        item = _as_dict(raw, "quote")
        if item is None:
            continue
        mapped.append(
            {
                "quote": _pick(item, "quote", "text", "content"),
                "name": _pick(item, "name", "author_name", "author", default="Client"),
                "company": _pick(item, "company", "business"),
                "position": _pick(item, "position", "author_role", "title"),
                "rating": _rating(item.get("rating")),
            }
        )
        if len(mapped) == MAX_TESTIMONIALS:
            break
    return mapped


def map_stats(items: list[Any]) -> list[dict[str, Any]]:
    mapped: list[dict[str, Any]] = []
    for raw in items:
        item = _as_dict(raw, "label")
        if item is None:
            continue
        mapped.append(
            {
                "value": _pick(item, "value", "number", "stat", default="0"),
                "label": _pick(item, "label", "text", "description"),
            }
        )
    return mapped


def map_features(items: list[Any]) -> list[dict[str, Any]]:
    mapped: list[dict[str, Any]] = []
    for raw in items:
        item = _as_dict(raw, "name")
        if item is None:
            continue
        mapped.append(
            {
                "name": _pick(item, "name", "text", "title"),
                "description": _pick(item, "description"),
                "icon": _pick(item, "icon"),
            }
        )
    return mapped


def map_links(items: list[Any]) -> list[dict[str, Any]]:
    """Normalise navigation/footer links to ``{label, url}``.

    A bare string becomes an in-page anchor: ``"Our Work"`` -> ``#our-work``.
    """
    mapped: list[dict[str, Any]] = []
    for raw in items:
        item = _as_dict(raw, "label")
        if item is None:
            continue
        label = _pick(item, "label", "title", "name", "text")
        if not label:
            continue
        mapped.append({"label": label, "url": _pick(item, "url", "href") or "#" + slugify(label)})
    return mapped


def map_faqs(items: list[Any]) -> list[dict[str, Any]]:
    mapped: list[dict[str, Any]] = []
    for raw in items:
        if not isinstance(raw, dict):
            continue
        question = _pick(raw, "question", "q", "title")
        if not question:
            continue
        mapped.append({"question": question, "answer": _pick(raw, "answer", "a", "text")})
    return mapped


def _rating(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_RATING
    return max(1, min(5, int(value)))


MAPPERS: dict[str, Callable[[list[Any]], list[dict[str, Any]]]] = {
    "services": map_services,
    "testimonials": map_testimonials,
    "stats": map_stats,
    "features": map_features,
    "links": map_links,
    "faqs": map_faqs,
}


def map_items(kind: Optional[str], items: list[Any]) -> list[Any]:
    """Apply the mapper registered for *kind*; no kind leaves items as-is.

    Raises:
        KeyError: If *kind* names no registered mapper.
    """
    if kind is None:
        return list(items)
    return MAPPERS[kind](items)
