"""Exception types raised while compiling a blueprint.

Every exception carries its ``ErrorKind`` plus the page/section it concerns,
and converts to a ``GenerationError`` entry at the compiler boundary.
"""

from __future__ import annotations

from typing import Optional

from themeforge.models import ErrorKind, GenerationError


class ThemeForgeError(Exception):
    """Base class for all compilation errors."""

    kind: ErrorKind = ErrorKind.INVALID_BLUEPRINT

    def __init__(
        self,
        message: str,
        *,
        page: Optional[str] = None,
        section: Optional[str] = None,
    ) -> None:
        self.message = message
        self.page = page
        self.section = section
        super().__init__(message)

    def to_entry(self) -> GenerationError:
        """Convert to a result error entry."""
        return GenerationError(
            kind=self.kind,
            message=self.message,
            page=self.page,
            section=self.section,
        )


class UnknownPresetError(ThemeForgeError):
    """The requested (industry, preset) pair is not registered."""
    kind = ErrorKind.UNKNOWN_PRESET


class PatternNotFoundError(ThemeForgeError):
    """A pattern id is absent from the registry or the candidate list."""
    kind = ErrorKind.PATTERN_NOT_FOUND


class DuplicatePathError(ThemeForgeError):
    """Two generated files would share the same output path."""
    kind = ErrorKind.DUPLICATE_PATH


class MissingRequiredSlotError(ThemeForgeError):
    """A slot under strict policy resolved to nothing."""
    kind = ErrorKind.MISSING_REQUIRED_SLOT


class ContentProviderTimeout(ThemeForgeError):
    """The content provider did not answer in time."""
    kind = ErrorKind.CONTENT_PROVIDER_TIMEOUT


class ContentProviderFailure(ThemeForgeError):
    """The content provider answered with an error or unusable payload."""
    kind = ErrorKind.CONTENT_PROVIDER_FAILURE


class InvalidBlueprintError(ThemeForgeError):
    """The blueprint (or a path derived from it) is malformed."""
    kind = ErrorKind.INVALID_BLUEPRINT


class RenderFailedError(ThemeForgeError):
    """A pattern template failed to render."""
    kind = ErrorKind.RENDER_FAILED


class RegistryLoadError(Exception):
    """A pattern catalog file is malformed or inconsistent."""

