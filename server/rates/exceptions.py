class RateServiceError(ValueError):
    """Base class for input errors reported back to the caller."""


class UnsupportedCurrencyError(RateServiceError):
    pass


class InvalidDateError(RateServiceError):
    pass


class InvertedDateRangeError(RateServiceError):
    pass


class UpstreamUnavailableError(Exception):
    """Raised inside the provider when the upstream payload is unusable."""


class CacheMiss(KeyError):
    """Raised by the cache store for absent or expired keys."""
