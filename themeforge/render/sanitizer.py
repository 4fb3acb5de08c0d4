"""Output escaping for generated theme markup.

Every user-supplied string that reaches a template goes through exactly one
of these methods, chosen by the context it lands in. The renderer injects a
single ``Sanitizer`` instance and exposes its methods as Jinja filters.
"""

from __future__ import annotations

import html
import re
from typing import Any

ALLOWED_SCHEMES = ("http", "https", "mailto", "tel")

_SCHEME = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):")
_CONTROL = re.compile(r"[\x00-\x1f\x7f]")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_TERMINATOR = re.compile(r"\*/|\?>")


class Sanitizer:
    """Escaping disciplines for text, attributes, URLs and comments.

    * ``text``: visible element content. Escapes ``& < >``, which also
      neutralises ``<?php`` open tags.
    * ``attr``: quoted attribute values. Escapes ``& < > " '``.
    * ``url``: ``href``/``src`` values. Only relative URLs, ``#`` anchors and
      the schemes in ``ALLOWED_SCHEMES`` survive; anything else becomes
      ``#``. The result is attribute-escaped.
    * ``comment``: text inside a PHP doc comment. Drops ``*/``, ``?>`` and
      line breaks, repeating until no terminator is left.
    * ``richtext``: paragraphs separated by blank lines, each text-escaped
      and wrapped in ``<p>``.
    """

    def __init__(self, allowed_schemes: tuple[str, ...] = ALLOWED_SCHEMES) -> None:
        self.allowed_schemes = tuple(s.lower() for s in allowed_schemes)

    def text(self, value: Any) -> str:
        return html.escape(_as_str(value), quote=False)

    def attr(self, value: Any) -> str:
        return html.escape(_as_str(value), quote=True)

    def url(self, value: Any) -> str:
        candidate = _CONTROL.sub("", _as_str(value)).strip()
        if not candidate:
            return "#"
        match = _SCHEME.match(candidate)
        if match and match.group(1).lower() not in self.allowed_schemes:
            return "#"
        if candidate.startswith("//"):
            return "#"
        return self.attr(candidate)

    def comment(self, value: Any) -> str:
        cleaned = _as_str(value)
        # Removing one terminator can splice its neighbours into another.
        while True:
            stripped = _TERMINATOR.sub("", cleaned)
            if stripped == cleaned:
                break
            cleaned = stripped
        return " ".join(cleaned.split())

    def richtext(self, value: Any) -> str:
        text = _as_str(value).replace("\r\n", "\n").replace("\r", "\n")
        paragraphs = [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]
        return "\n".join(f"<p>{self.text(' '.join(p.split()))}</p>" for p in paragraphs)

    def filters(self) -> dict[str, Any]:
        """Return the Jinja filter table."""
        return {
            "text": self.text,
            "attr": self.attr,
            "url": self.url,
            "comment": self.comment,
            "richtext": self.richtext,
        }


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
