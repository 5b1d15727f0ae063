"""Typed exception hierarchy for provider and datastore errors.

Provides structured exceptions for differentiated error handling
(auth errors vs transient network errors vs unusable data).
"""


class ProviderError(Exception):
    """Base exception for all provider-related errors.

    Carries the provider name so callers can identify which provider failed.
    """

    def __init__(self, message: str, provider_name: str = ""):
        self.provider_name = provider_name
        super().__init__(message)


class UpstreamRequestFailure(ProviderError):
    """Non-success response from the document store or a price/FX provider."""

    def __init__(
        self,
        message: str,
        provider_name: str = "",
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, provider_name)


class ProviderConnectionError(UpstreamRequestFailure):
    """Network failures: timeouts, DNS resolution, connection refused."""

    def __init__(self, message: str, provider_name: str = ""):
        super().__init__(message, provider_name, status_code=None)


class ProviderAuthError(UpstreamRequestFailure):
    """Credentials missing, expired, or invalid (HTTP 401/403)."""

    pass


class RateUnavailable(ProviderError):
    """The provider answered but returned no usable (positive, numeric) value."""

    pass


class DataQualityGap(Exception):
    """A store record lacks a required field or holds it with the wrong type.

    Raised by the typed record accessors; row parsers catch it and skip
    the row instead of letting it reach the caller.
    """

    def __init__(self, record_id: str, field_name: str, expected: str):
        self.record_id = record_id
        self.field_name = field_name
        self.expected = expected
        super().__init__(
            f"record {record_id}: field {field_name!r} missing or not a {expected}"
        )
