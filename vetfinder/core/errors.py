"""Error taxonomy shared by the discovery pipeline and its HTTP adapters."""

from typing import Optional


class DiscoveryError(RuntimeError):
    """Base class for failures a caller can be told about."""

    http_status = 500


class ConfigError(DiscoveryError):
    """Raised when the Places credential is not available for a request."""

    http_status = 400


class MalformedInput(DiscoveryError):
    """Raised when the inbound request does not carry a usable zip code or radius."""

    http_status = 400


class UpstreamError(DiscoveryError):
    """Raised when the Places API call fails or answers with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def http_status(self) -> int:  # type: ignore[override]
        if self.status_code is not None and 400 <= self.status_code < 600:
            return self.status_code
        return 500


class MalformedRecord(ValueError):
    """Raised for a single upstream place that lacks a name or an address."""
