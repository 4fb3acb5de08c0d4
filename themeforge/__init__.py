"""ThemeForge -- compiles site blueprints into WordPress block themes.

Key classes:
    ThemeCompiler     - Runs one blueprint through select/merge/resolve/render
    CompilerConfig    - Typed configuration for a compiler instance
    PatternRegistry   - Reloadable catalog of industries, presets and patterns
    GenerationResult  - Ordered files, errors and run metadata
"""

from .compiler import ThemeCompiler, generate
from .config import CompilerConfig, SlotPolicy
from .errors import ThemeForgeError
from .models import Blueprint, GeneratedFile, GenerationError, GenerationResult
from .registry import PatternRegistry

__version__ = "0.1.0"

__all__ = [
    "ThemeCompiler",
    "generate",
    "CompilerConfig",
    "SlotPolicy",
    "ThemeForgeError",
    "Blueprint",
    "GeneratedFile",
    "GenerationError",
    "GenerationResult",
    "PatternRegistry",
]
