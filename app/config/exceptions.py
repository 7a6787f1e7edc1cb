"""Custom exceptions for configuration management."""

from typing import Any, Dict, List, Optional


class ConfigurationError(Exception):
    """
    Exception raised when configuration is unusable.

    Carries a list of specific errors and suggestions so the CLI can print a
    readable report and the HTTP trigger can return it as JSON.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]

        if self.errors:
            parts.append("\nValidation Errors:")
            parts.extend(f"  {i}. {error}" for i, error in enumerate(self.errors, 1))

        if self.suggestions:
            parts.append("\nSuggestions:")
            parts.extend(f"  - {suggestion}" for suggestion in self.suggestions)

        return "\n".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Structured form for JSON summaries."""
        return {"message": self.message, "errors": list(self.errors)}
