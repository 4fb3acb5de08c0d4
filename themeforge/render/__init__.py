"""ThemeForge rendering: escaping and Jinja2 templates."""

from .renderer import (
    TemplateRenderer,
    normalize_output,
    page_template_path,
    pattern_file_path,
    pattern_slug,
)
from .sanitizer import Sanitizer

__all__ = [
    "Sanitizer",
    "TemplateRenderer",
    "normalize_output",
    "page_template_path",
    "pattern_file_path",
    "pattern_slug",
]
