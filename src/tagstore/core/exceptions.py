"""Custom exceptions for tagstore."""


class TagStoreError(Exception):
    """Base exception for all tagstore errors."""


class RepositoryError(TagStoreError):
    """Storage or query execution error."""


class ValidationError(TagStoreError):
    """Caller supplied an invalid argument or query."""


class ConfigError(TagStoreError):
    """Configuration error."""
