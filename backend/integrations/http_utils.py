"""HTTP helpers shared by the httpx-based integrations."""

import httpx

from integrations.exceptions import (
    ProviderAuthError,
    ProviderConnectionError,
    UpstreamRequestFailure,
)


def send_request(
    client: httpx.Client,
    method: str,
    path: str,
    provider_name: str,
    **kwargs,
) -> httpx.Response:
    """Issue one request and translate failures into the provider taxonomy.

    No retries are attempted; the first failure propagates to the caller.

    Raises:
        ProviderAuthError: On HTTP 401/403.
        UpstreamRequestFailure: On any other non-success status.
        ProviderConnectionError: On timeouts and network errors.
    """
    try:
        response = client.request(method, path, **kwargs)
        response.raise_for_status()
        return response
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        if status in (401, 403):
            raise ProviderAuthError(
                f"{provider_name} authentication failed (HTTP {status})",
                provider_name=provider_name,
                status_code=status,
            ) from exc
        raise UpstreamRequestFailure(
            f"{provider_name} request {method} {path} failed (HTTP {status})",
            provider_name=provider_name,
            status_code=status,
        ) from exc
    except (httpx.TimeoutException, httpx.TransportError) as exc:
        raise ProviderConnectionError(
            f"{provider_name} connection failed: {exc}",
            provider_name=provider_name,
        ) from exc
