"""Exceptions raised by ScriptAnchor.

Every error carries a message, an optional hint for the user and optional
debugging details. Anchoring misses are not errors and never raise.
"""

from __future__ import annotations

from typing import Any


class ScriptAnchorError(Exception):
    """Base class for all ScriptAnchor errors."""

    def __init__(
        self,
        message: str,
        hint: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.hint = hint
        self.details = details
        super().__init__(self.format_error())

    def format_error(self) -> str:
        """Render message, hint and details as one multi-line string."""
        output = f"Error: {self.message}"
        if self.hint:
            output += f"\nHint: {self.hint}"
        if self.details:
            details_str = "\n".join(
                f"  {key}: {value}" for key, value in self.details.items()
            )
            output += f"\nDetails:\n{details_str}"
        return output


class ConfigurationError(ScriptAnchorError):
    """Configuration errors including invalid settings and missing config files."""

    pass


class ValidationError(ScriptAnchorError):
    """Block model violations and edit commands addressing unknown ids."""

    pass


class ParseError(ScriptAnchorError):
    """Plain-text import errors."""

    pass


class PersistenceError(ScriptAnchorError):
    """Failures reported by the persistence collaborator."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        project_id: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize persistence error.

        Args:
            message: Error message
            operation: Store operation that failed (e.g. ``save_script``)
            project_id: Project the operation was issued for
            original_error: The underlying exception, if any
        """
        self.operation = operation
        self.project_id = project_id
        self.original_error = original_error

        details: dict[str, Any] = {}
        if operation:
            details["operation"] = operation
        if project_id:
            details["project_id"] = project_id
        if original_error:
            details["original_error"] = (
                f"{type(original_error).__name__}: {original_error}"
            )

        super().__init__(
            message=message,
            hint="Local edits are kept and will be saved on the next flush",
            details=details or None,
        )


class ShotCreationError(PersistenceError):
    """The store refused or failed to create a shot record."""

    pass


def check_config_keys(config: dict[str, Any]) -> None:
    """Check for common configuration mistakes.

    Args:
        config: Configuration dictionary to validate

    Raises:
        ConfigurationError: With hints about correct configuration keys
    """
    wrong_keys = {
        "db_path": "database_path",
        "delay": "autosave_delay",
        "debounce": "autosave_delay",
        "settle_delay": "indicator_settle_delay",
    }

    for wrong, correct in wrong_keys.items():
        if wrong in config:
            raise ConfigurationError(
                message=f"Invalid configuration key '{wrong}'",
                hint=f"Use '{correct}' instead of '{wrong}'",
                details={
                    "found_keys": list(config.keys()),
                    "invalid_key": wrong,
                    "correct_key": correct,
                },
            )
