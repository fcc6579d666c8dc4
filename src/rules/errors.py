"""Configuration errors shared by the policy and config loaders."""


class ConfigError(Exception):
    """Raised when configuration cannot be parsed or is invalid."""
