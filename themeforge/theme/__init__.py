"""ThemeForge base theme: design tokens and fixed theme files."""

from .base import BaseThemeGenerator, ThemeFileGenerator, theme_slug_for
from .lint import LintFinding, lint_blueprint
from .tokens import color_variants, palette, theme_json, token_context

__all__ = [
    "BaseThemeGenerator",
    "ThemeFileGenerator",
    "theme_slug_for",
    "LintFinding",
    "lint_blueprint",
    "color_variants",
    "palette",
    "theme_json",
    "token_context",
]
