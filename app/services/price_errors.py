from __future__ import annotations


class PriceFetchError(Exception):
    """Base class for anything that stops a refresh from producing a snapshot."""

    code = "price_fetch_failed"


class InvalidConfiguration(PriceFetchError):
    """The configured price API URL cannot be requested."""

    code = "invalid_configuration"


class NetworkFailure(PriceFetchError):
    """Transport error or non-2xx response from the price API."""

    code = "network_failure"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500


class DecodeFailure(PriceFetchError):
    """Response body does not have the expected shape."""

    code = "decode_failure"
