"""Utility layer errors."""


class UtilError(Exception):
    """Base utility error."""

    pass


class ConfigurationError(UtilError):
    """Configuration error."""

    pass


class SigningConfigurationError(ConfigurationError):
    """Raised when the access token signing key is not configured."""

    def __init__(self) -> None:
        super().__init__("Access token signing key is not configured")
