"""Base-theme file generation.

Produces the fixed set of theme files every generated site ships with
(stylesheet header, PHP scaffolding, design-token outputs and build
tooling). Pattern and page files are produced separately by the compiler.
"""

from __future__ import annotations

import re
from typing import Any, Optional, Protocol

from themeforge.config import ThemeConfig
from themeforge.models import Blueprint, FileType, GeneratedFile
from themeforge.render.renderer import TemplateRenderer
from themeforge.theme.tokens import theme_json, token_context
from themeforge.utils import dump_json, slugify

DEFAULT_THEME_SLUG = "themeforge-theme"

# Output path -> (template name, file type). JSON files are built in code.
_TEMPLATED_FILES: list[tuple[str, str, FileType]] = [
    ("style.css", "style.css", FileType.STYLE),
    ("functions.php", "functions.php", FileType.MARKUP),
    ("index.php", "index.php", FileType.MARKUP),
    ("header.php", "header.php", FileType.MARKUP),
    ("footer.php", "footer.php", FileType.MARKUP),
    ("tailwind.config.js", "tailwind.config.js", FileType.CONFIG),
    ("src/input.css", "input.css", FileType.STYLE),
    ("src/main.js", "main.js", FileType.SCRIPT),
    ("css/variables.css", "variables.css", FileType.STYLE),
    ("README.md", "README.md", FileType.DOC),
]


def theme_slug_for(blueprint: Blueprint) -> str:
    """Derive the theme slug (text domain) from the company name."""
    return slugify(blueprint.client_profile.company.name) or DEFAULT_THEME_SLUG


def _function_prefix(theme_slug: str) -> str:
    prefix = re.sub(r"[^a-z0-9]+", "_", theme_slug)
    return prefix if prefix[:1].isalpha() else f"tf_{prefix}"


class ThemeFileGenerator(Protocol):
    """Produces the base-theme files for a blueprint."""

    def generate(self, blueprint: Blueprint, theme_slug: str) -> list[GeneratedFile]:
        ...


class BaseThemeGenerator:
    """Default base-theme generator backed by the ``theme/`` templates."""

    def __init__(
        self,
        renderer: Optional[TemplateRenderer] = None,
        theme_config: Optional[ThemeConfig] = None,
    ) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.theme_config = theme_config or ThemeConfig()

    def context(self, blueprint: Blueprint, theme_slug: str) -> dict[str, Any]:
        """Build the template context shared by every base file."""
        categories: list[str] = []
        for page in blueprint.pages:
            for section in page.sections:
                if section.type.value not in categories:
                    categories.append(section.type.value)

        function_prefix = _function_prefix(theme_slug)
        return {
            "theme_name": blueprint.client_profile.company.name,
            "theme_slug": theme_slug,
            "function_prefix": function_prefix,
            "constant_prefix": function_prefix.upper(),
            "author": self.theme_config.author,
            "version": self.theme_config.version,
            "industry": blueprint.industry,
            "preset": blueprint.preset,
            "pages": blueprint.pages,
            "pattern_categories": categories,
            **token_context(blueprint.design_tokens),
        }

    def package_json(self, theme_slug: str) -> dict[str, Any]:
        return {
            "name": theme_slug,
            "version": self.theme_config.version,
            "private": True,
            "type": "module",
            "scripts": {
                "build": "tailwindcss -i ./src/input.css -o ./dist/output.css --minify",
                "watch": "tailwindcss -i ./src/input.css -o ./dist/output.css --watch",
            },
            "devDependencies": {"tailwindcss": "^3.4.0"},
        }

    def generate(self, blueprint: Blueprint, theme_slug: str) -> list[GeneratedFile]:
        """Render every base file, in a fixed order."""
        context = self.context(blueprint, theme_slug)
        files = [
            GeneratedFile(
                path=path,
                content=self.renderer.render_theme_file(template, context),
                type=file_type,
                metadata={"encoding": "utf-8"},
            )
            for path, template, file_type in _TEMPLATED_FILES
        ]
        files.append(_json_file("theme.json", theme_json(blueprint.design_tokens)))
        files.append(_json_file("package.json", self.package_json(theme_slug)))
        return files


def _json_file(path: str, data: dict[str, Any]) -> GeneratedFile:
    return GeneratedFile(
        path=path,
        content=dump_json(data),
        type=FileType.CONFIG,
        metadata={"encoding": "utf-8"},
    )
