"""ThemeForge content resolution.

Key classes:
    ContentResolver         - Slot resolution across AI/literal/source/fallback
    ContentProvider         - Protocol for AI content sources
    StaticContentProvider   - Snapshot-backed provider
    OllamaContentProvider   - Local Ollama-backed provider
"""

from .mappers import MAPPERS, map_items
from .ollama import OllamaContentProvider
from .providers import (
    ContentProvider,
    PromptContext,
    StaticContentProvider,
    build_prompt_context,
)
from .resolver import ContentResolution, ContentResolver, FetchResult

__all__ = [
    # Resolution
    "ContentResolver",
    "ContentResolution",
    "FetchResult",
    # Providers
    "ContentProvider",
    "PromptContext",
    "StaticContentProvider",
    "OllamaContentProvider",
    "build_prompt_context",
    # Mappers
    "MAPPERS",
    "map_items",
]
