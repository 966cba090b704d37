from typing import Optional


class VoltsageError(Exception):
    pass


class ProviderConfigError(VoltsageError):
    """Raised before any request when a provider cannot be used as configured."""
    pass


class ProviderError(VoltsageError):
    """Raised when a provider call fails or returns an unusable payload."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GeocodingError(VoltsageError):
    pass
