"""
Learning Tracker - Custom Exceptions

Anti-Patterns Avoided:
- Exception Shadowing: all errors derive from LearningTrackerError instead of
  reusing builtins like ValueError or LookupError
"""


class LearningTrackerError(Exception):
    """Base exception for the Learning Tracker service.

    All custom exceptions inherit from this base class.
    """

    def __init__(self, message: str) -> None:
        """Initialize with a human-readable message.

        Args:
            message: Description of the error.
        """
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message


class ConfigurationError(LearningTrackerError):
    """Raised when configuration is invalid or missing."""
    pass


class CatalogValidationError(ConfigurationError):
    """Raised when the roadmap catalog file is missing or malformed.

    Raised once at load time so a bad curriculum never reaches a request.
    """
    pass


class ContentRulesConfigError(ConfigurationError):
    """Raised when the classifier vocabulary file cannot be loaded."""
    pass
