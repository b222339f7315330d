"""
Errors reported to the user by the command-line layer.
"""


class SkateError(Exception):
    """Base class for user-facing failures."""


class FormatError(SkateError, ValueError):
    """Raised when an address has more than one '@'."""

    def __init__(self, message: str = "bad key format, use KEY@DB"):
        super().__init__(message)


class DatabaseNotFound(SkateError):
    """
    Raised when an explicitly named database does not exist.

    Attributes:
        suggestions: '@'-prefixed names of existing databases that are
            close to the requested one, possibly empty.
    """

    def __init__(self, suggestions: list[str] | None = None):
        self.suggestions = list(suggestions or [])
        super().__init__(self.suggestions)

    def __str__(self) -> str:
        if not self.suggestions:
            return "no suggestions found"
        return f'did you mean "{", ".join(self.suggestions)}"'
