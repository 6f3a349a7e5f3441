class LinkMinterError(Exception):
    """Base exception for all application-specific errors."""

    error_code = 'app:linkminter_error'


class ValidationError(LinkMinterError):
    """Raised when a caller hands in invalid input (e.g. an empty URL)."""

    error_code = 'app:validation_error'


class ConfigurationError(LinkMinterError):
    """Base exception for all configuration errors."""

    error_code = 'config:configuration_error'


class BadConfigurationError(ConfigurationError):
    """Raised when the application is configured with invalid parameters."""

    error_code = 'config:bad_configuration_error'
