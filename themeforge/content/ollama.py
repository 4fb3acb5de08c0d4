"""Content provider backed by a local Ollama server.

Sends one JSON-mode ``/api/generate`` request per section and parses the
model's reply into a slot -> value mapping.

Typical usage::

    provider = OllamaContentProvider(OllamaConfig(model="llama3.1:8b"))
    content = await provider.fetch_content(SectionType.HERO, context)
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

import httpx

from themeforge.config import OllamaConfig
from themeforge.errors import ContentProviderFailure, ContentProviderTimeout
from themeforge.models import SectionType
from themeforge.content.providers import PromptContext

_JSON_FENCE = re.compile(r"```(?:json)?\s*\n(.*?)\n\s*```", re.DOTALL)

_SLOT_HINTS = {
    "text": "short plain text",
    "richtext": "one or more paragraphs separated by a blank line",
    "image-url": "an absolute https image URL or an empty string",
    "list": "a JSON array of objects",
}


class OllamaContentProvider:
    """Writes section copy with an Ollama model."""

    def __init__(self, config: Optional[OllamaConfig] = None) -> None:
        self.config = config or OllamaConfig()
        self.base_url = self.config.url.rstrip("/")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.config.timeout, connect=10.0),
        )

    @staticmethod
    def build_prompt(section_type: SectionType, context: PromptContext) -> str:
        """Build the copywriting prompt for one section."""
        slot_lines = "\n".join(
            f'- "{name}": {_SLOT_HINTS.get(kind, "text")}'
            for name, kind in context.slots.items()
        )
        return (
            f"You are a professional copywriter creating website content for a "
            f"{context.industry.lower()} business.\n\n"
            f"## Business Information\n"
            f"- Company Name: {context.company_name}\n"
            f"- Industry: {context.industry}\n"
            f"- Location: {context.location or 'Not specified'}\n"
            f"- Tone: {context.tone}\n"
            f"- Tagline: {context.tagline or 'Not specified'}\n\n"
            f"## Task\n"
            f"Write the {section_type.value} section of the {context.page_slug} page. "
            f"Use a {context.tone} tone and no placeholder text.\n\n"
            f"## Output Format\n"
            f"Respond with ONLY a JSON object with these keys:\n{slot_lines}\n"
        )

    @staticmethod
    def parse_reply(text: str) -> dict[str, Any]:
        """Extract the JSON object from a model reply.

        Accepts a bare JSON object or one wrapped in a fenced ``json`` block.

        Raises:
            ContentProviderFailure: If no JSON object can be parsed.
        """
        match = _JSON_FENCE.search(text)
        raw = match.group(1) if match else text.strip()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ContentProviderFailure(f"Model reply is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ContentProviderFailure("Model reply is not a JSON object")
        return data

    # ------------------------------------------------------------------
    # ContentProvider
    # ------------------------------------------------------------------

    async def fetch_content(
        self, section_type: SectionType, prompt_context: PromptContext
    ) -> dict[str, Any]:
        payload: dict = {
            "model": self.config.model,
            "prompt": self.build_prompt(section_type, prompt_context),
            "format": "json",
            "stream": False,
        }
        ref = prompt_context.ref

        try:
            async with self._client() as client:
                response = await client.post("/api/generate", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as exc:
            raise ContentProviderTimeout(
                f"Request to Ollama timed out after {self.config.timeout}s",
                page=prompt_context.page_slug,
                section=ref,
            ) from exc
        except httpx.ConnectError as exc:
            raise ContentProviderFailure(
                f"Cannot connect to Ollama at {self.base_url}. Is the server running?",
                page=prompt_context.page_slug,
                section=ref,
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ContentProviderFailure(
                f"Ollama returned HTTP {exc.response.status_code}: {exc.response.text[:500]}",
                page=prompt_context.page_slug,
                section=ref,
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ContentProviderFailure(
                f"Unexpected error during Ollama generate: {exc}",
                page=prompt_context.page_slug,
                section=ref,
            ) from exc

        if not isinstance(data, dict):
            raise ContentProviderFailure(
                "Ollama returned an unexpected payload",
                page=prompt_context.page_slug,
                section=ref,
            )
        return self.parse_reply(data.get("response", ""))
