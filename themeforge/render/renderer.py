"""Jinja2 rendering of section patterns, page templates and theme files.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``themeforge/render/templates/`` directory. Rendering is a pure function of
its inputs: the same pattern, config and content always produce the same
bytes.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from themeforge.models import PageSpec, PatternDefinition, ResolvedSection
from themeforge.render.sanitizer import Sanitizer

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"
_BLANK_RUN = re.compile(r"\n{3,}")

PATTERN_HEADER_TEMPLATE = "wrappers/pattern.php.j2"
PAGE_TEMPLATE = "wrappers/page.php.j2"


def normalize_output(text: str) -> str:
    """Normalise rendered text to a byte-stable form.

    * ``\\r\\n`` and ``\\r`` become ``\\n``.
    * Trailing whitespace is stripped from every line.
    * Runs of blank lines collapse to one.
    * Exactly one trailing newline.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = "\n".join(line.rstrip() for line in text.split("\n"))
    text = _BLANK_RUN.sub("\n\n", text).strip("\n")
    return text + "\n"


def page_template_path(page_slug: str) -> str:
    """Return the theme file that renders *page_slug*."""
    return "front-page.php" if page_slug == "home" else f"page-{page_slug}.php"


def pattern_file_path(page_slug: str, section_key: str) -> str:
    return f"patterns/{page_slug}-{section_key}.php"


def pattern_slug(theme_slug: str, page_slug: str, section_key: str) -> str:
    """Registered block-pattern slug, e.g. ``acme/home-hero``."""
    return f"{theme_slug}/{page_slug}-{section_key}"


class TemplateRenderer:
    """Renders section patterns, page templates and base-theme files.

    The renderer owns one Jinja2 ``Environment`` with ``StrictUndefined`` so
    a template that references an undeclared slot or option fails loudly.
    All escaping goes through the injected ``Sanitizer``, registered as the
    ``text``, ``attr``, ``url``, ``comment`` and ``richtext`` filters.
    """

    def __init__(
        self,
        sanitizer: Optional[Sanitizer] = None,
        template_dir: str | Path | None = None,
    ) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.sanitizer = sanitizer or Sanitizer()
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters.update(self.sanitizer.filters())

    # -- Sections ----------------------------------------------------------

    def render(
        self,
        pattern: PatternDefinition,
        config: dict[str, Any],
        content: dict[str, Any],
    ) -> str:
        """Render one section body.

        Args:
            pattern: The selected pattern definition.
            config: Merged config, one value per declared option.
            content: Resolved content, one value per declared slot.

        Returns:
            Normalised markup for the section.
        """
        template = self.env.get_template(pattern.template_path)
        return normalize_output(template.render(pattern=pattern, config=config, content=content))

    def render_pattern_file(self, section: ResolvedSection, theme_slug: str) -> str:
        """Render a section as a WordPress block-pattern file.

        The body is prefixed with the pattern header (Title, Slug,
        Categories) that WordPress reads from ``patterns/*.php``.
        """
        body = self.render(section.pattern, section.config, section.content)
        template = self.env.get_template(PATTERN_HEADER_TEMPLATE)
        return normalize_output(
            template.render(
                title=f"{section.pattern.name} ({section.ref})",
                slug=pattern_slug(theme_slug, section.page, section.key),
                category=f"{theme_slug}-{section.pattern.section_type.value}",
                pattern_id=section.pattern.id,
                body=body,
            )
        )

    # -- Pages and theme files ---------------------------------------------

    def render_page(self, page: PageSpec, section_keys: Sequence[str], theme_slug: str) -> str:
        """Render the page template that includes each section in order."""
        template = self.env.get_template(PAGE_TEMPLATE)
        return normalize_output(
            template.render(
                page=page,
                is_front=page.slug == "home",
                theme_slug=theme_slug,
                pattern_slugs=[pattern_slug(theme_slug, page.slug, key) for key in section_keys],
            )
        )

    def render_theme_file(self, name: str, context: dict[str, Any]) -> str:
        """Render ``theme/<name>.j2`` with *context*."""
        template = self.env.get_template(f"theme/{name}.j2")
        return normalize_output(template.render(**context))

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return a sorted list of all ``.j2`` template paths under *prefix*."""
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob("*.j2")
        )
