"""Content-slot resolution.

Builds the final content map for one section. For every declared slot the
sources are tried in precedence order:

1. AI content fetched from the ``ContentProvider`` for this section,
2. literal ``content`` on the blueprint section descriptor,
3. the slot's ``source`` path into the blueprint,
4. the pattern's declared fallback.

Values are stored raw; escaping happens in the renderer.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from themeforge.config import SlotPolicy
from themeforge.content.mappers import map_items
from themeforge.content.providers import ContentProvider, PromptContext
from themeforge.errors import (
    ContentProviderFailure,
    ContentProviderTimeout,
    MissingRequiredSlotError,
)
from themeforge.models import (
    ContentSlot,
    FailurePolicy,
    PatternDefinition,
    SectionDescriptor,
    SectionType,
    SlotTransform,
    SlotType,
)

TRUNCATE_AT = 100
PLACEHOLDER_HEADLINE = "Your Headline Here"
PLACEHOLDER_BODY = "Lorem ipsum dolor sit amet, consectetur adipiscing elit."

_INDEXED = re.compile(r"^(\w+)\[(\d+)\]$")
_MISSING = object()


# ---------------------------------------------------------------------------
# Result records
# ---------------------------------------------------------------------------


@dataclass
class FetchResult:
    """Outcome of one provider call for one section."""

    content: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    used: bool = False


@dataclass
class ContentResolution:
    content: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def lookup_path(data: Any, path: str) -> Any:
    """Follow a dotted *path* (``a.b[0].c``) through nested dicts/lists.

    A leading ``blueprint.`` is ignored. Returns ``None`` when any step is
    missing.
    """
    if path.startswith("blueprint."):
        path = path[len("blueprint."):]

    current = data
    for part in path.split("."):
        if current is None:
            return None
        match = _INDEXED.match(part)
        if match:
            key, index = match.group(1), int(match.group(2))
            items = current.get(key) if isinstance(current, dict) else None
            if not isinstance(items, list) or index >= len(items):
                return None
            current = items[index]
        elif isinstance(current, dict):
            current = current.get(part)
        else:
            return None
    return current


def apply_transform(value: Any, transform: Optional[SlotTransform]) -> Any:
    """Apply a text transform; non-string values pass through unchanged."""
    if transform is None or not isinstance(value, str):
        return value
    if transform == SlotTransform.UPPERCASE:
        return value.upper()
    if transform == SlotTransform.LOWERCASE:
        return value.lower()
    if transform == SlotTransform.CAPITALIZE:
        return value[:1].upper() + value[1:].lower()
    if transform == SlotTransform.TRUNCATE and len(value) > TRUNCATE_AT:
        return value[:TRUNCATE_AT] + "..."
    return value


def placeholder_for(name: str, slot: ContentSlot) -> Any:
    """Return the lenient-policy placeholder for an unresolved slot."""
    if slot.type == SlotType.LIST:
        return []
    if slot.type == SlotType.IMAGE_URL:
        return ""
    if "headline" in name or "title" in name:
        return PLACEHOLDER_HEADLINE
    if "description" in name or "subheadline" in name or slot.type == SlotType.RICHTEXT:
        return PLACEHOLDER_BODY
    return f"[{name}]"


def _coerce(slot: ContentSlot, value: Any) -> Any:
    """Return *value* normalised for *slot*, or ``_MISSING`` if unusable.

    Raises:
        TypeError: If the value has the wrong shape for the slot type.
    """
    if value is None:
        return _MISSING

    if slot.type == SlotType.LIST:
        if not isinstance(value, list):
            raise TypeError(f"expected a list, got {type(value).__name__}")
        return map_items(slot.item_kind, value)

    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise TypeError(f"expected text, got {type(value).__name__}")
    return value.strip() if isinstance(value, str) else str(value)


def _is_empty(value: Any) -> bool:
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list):
        return len(value) == 0
    return value is None


# ---------------------------------------------------------------------------
# ContentResolver
# ---------------------------------------------------------------------------


class ContentResolver:
    """Resolves every slot of a section and fetches its AI content.

    Args:
        provider: Content source; ``None`` disables fetching.
        timeout: Seconds allowed for one ``fetch_content`` call.
        policy: Run-level missing-slot policy.
    """

    def __init__(
        self,
        provider: Optional[ContentProvider] = None,
        *,
        timeout: float = 20.0,
        policy: Optional[SlotPolicy] = None,
    ) -> None:
        self.provider = provider
        self.timeout = timeout
        self.policy = policy or SlotPolicy()

    async def fetch(
        self,
        section_type: SectionType,
        context: PromptContext,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> FetchResult:
        """Fetch AI content for one section, degrading to empty on failure.

        Timeouts and provider failures become warnings; the section then
        resolves from the lower-precedence sources.
        """
        if self.provider is None:
            return FetchResult()
        if cancel is not None and cancel.is_set():
            return FetchResult(warnings=[f"{context.ref}: content fetch skipped after cancellation"])

        try:
            payload = await asyncio.wait_for(
                self.provider.fetch_content(section_type, context), timeout=self.timeout
            )
        except (asyncio.TimeoutError, ContentProviderTimeout):
            return FetchResult(
                warnings=[
                    f"{context.ref}: content provider timed out after {self.timeout:g}s; "
                    f"using fallback content"
                ]
            )
        except ContentProviderFailure as exc:
            return FetchResult(
                warnings=[f"{context.ref}: content provider failed ({exc.message}); using fallback content"]
            )

        if not isinstance(payload, dict):
            return FetchResult(
                warnings=[f"{context.ref}: content provider returned a non-mapping payload; ignored"]
            )
        return FetchResult(content=payload, used=bool(payload))

    def resolve(
        self,
        pattern: PatternDefinition,
        descriptor: SectionDescriptor,
        blueprint_data: Mapping[str, Any],
        ai_content: Optional[Mapping[str, Any]] = None,
        *,
        ref: str,
    ) -> ContentResolution:
        """Resolve every slot declared by *pattern*.

        Args:
            pattern: The selected pattern.
            descriptor: The blueprint section being resolved.
            blueprint_data: ``Blueprint.model_dump(mode="json")`` for
                ``source`` path lookups.
            ai_content: Content fetched for this section, if any.
            ref: Section reference (``page/key``) used in messages.

        Raises:
            MissingRequiredSlotError: If any slot governed by the strict
                policy stays unresolved. The error lists all of them.
        """
        ai_content = ai_content or {}
        resolution = ContentResolution()
        missing: list[str] = []

        for name, slot in pattern.slots.items():
            value = self._resolve_slot(
                name, slot, ai_content, descriptor.content, blueprint_data, ref, resolution.warnings
            )
            if value is _MISSING:
                policy = self.policy.for_slot(pattern.section_type, name, slot.required)
                if policy == FailurePolicy.STRICT:
                    missing.append(name)
                    continue
                value = placeholder_for(name, slot)
                resolution.warnings.append(f"{ref}: slot {name!r} unresolved; using placeholder")
            resolution.content[name] = apply_transform(value, slot.transform)

        if missing:
            page = ref.split("/", 1)[0]
            raise MissingRequiredSlotError(
                f"Section {ref} ({pattern.id}) is missing required content: {', '.join(missing)}",
                page=page,
                section=ref,
            )
        return resolution

    # -- Internal ----------------------------------------------------------

    def _resolve_slot(
        self,
        name: str,
        slot: ContentSlot,
        ai_content: Mapping[str, Any],
        literal: Mapping[str, Any],
        blueprint_data: Mapping[str, Any],
        ref: str,
        warnings: list[str],
    ) -> Any:
        sources: list[tuple[str, Any]] = [
            ("AI content", ai_content.get(name)),
            ("blueprint content", literal.get(name)),
        ]
        if slot.source:
            sources.append((f"source {slot.source}", lookup_path(blueprint_data, slot.source)))

        for label, raw in sources:
            try:
                value = _coerce(slot, raw)
            except TypeError as exc:
                warnings.append(f"{ref}: ignored {label} for slot {name!r}: {exc}")
                continue
            if value is not _MISSING and not _is_empty(value):
                return value

        if slot.has_fallback:
            try:
                value = _coerce(slot, slot.fallback)
            except TypeError as exc:
                warnings.append(f"{ref}: ignored fallback for slot {name!r}: {exc}")
                return _MISSING
            if not slot.required or not _is_empty(value):
                return value

        return _MISSING
