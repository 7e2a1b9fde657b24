"""HTTP executors for the IndieAuth SDK.

The async executor is the primitive; the sync executor mirrors it
call for call over ``httpx.Client``. Both route every exchange through
``validate_response`` and translate transport failures the same way.
No retries are attempted; timeouts and cancellation belong to httpx.
"""

from __future__ import annotations

import httpx

from ..http import validate_response
from ..telemetry import get_logger, trace_operation
from .errors import ErrorFactory


def _apply_client_defaults(
    client: httpx.Client | httpx.AsyncClient,
    request: httpx.Request,
) -> None:
    # Requests built outside the client miss its User-Agent and timeouts
    user_agent = client.headers.get("User-Agent")
    if user_agent:
        request.headers.setdefault("User-Agent", user_agent)
    request.extensions.setdefault("timeout", client.timeout.as_dict())


class SyncHTTPExecutor:
    """Synchronous HTTP executor."""

    def __init__(self, client: httpx.Client) -> None:
        """Initialize sync HTTP executor.

        Args:
            client: HTTP client.
        """
        self._client = client
        self._logger = get_logger()

    def fetch(self, url: str) -> httpx.Response:
        """GET ``url``.

        Raises:
            InvalidURLError: If the URL cannot be requested.
            NetworkError: On transport failure.
            HTTPStatusError: On a non-2xx status.
        """
        try:
            request = self._client.build_request("GET", url)
        except (httpx.InvalidURL, ValueError) as e:
            raise ErrorFactory.from_exception(e, url=url) from e
        return self.send(request)

    def send(self, request: httpx.Request) -> httpx.Response:
        """Send a prepared request.

        Raises:
            InvalidURLError: If the URL cannot be requested.
            NetworkError: On transport failure.
            HTTPStatusError: On a non-2xx status.
        """
        url = str(request.url)
        _apply_client_defaults(self._client, request)
        with trace_operation(
            "http_request",
            attributes={"http.method": request.method, "http.url": url},
        ) as span:
            try:
                response = self._client.send(request)
            except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
                self._logger.warning("HTTP request failed", method=request.method, url=url, error=str(e))
                raise ErrorFactory.from_exception(e, url=url) from e

            span.set_attribute("http.status_code", response.status_code)
            self._logger.debug(
                "HTTP request completed",
                method=request.method,
                url=url,
                status_code=response.status_code,
            )
            validate_response(url, response)
            return response


class AsyncHTTPExecutor:
    """Asynchronous HTTP executor."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        """Initialize async HTTP executor.

        Args:
            client: Async HTTP client.
        """
        self._client = client
        self._logger = get_logger()

    async def fetch(self, url: str) -> httpx.Response:
        """GET ``url``.

        Raises:
            InvalidURLError: If the URL cannot be requested.
            NetworkError: On transport failure.
            HTTPStatusError: On a non-2xx status.
        """
        try:
            request = self._client.build_request("GET", url)
        except (httpx.InvalidURL, ValueError) as e:
            raise ErrorFactory.from_exception(e, url=url) from e
        return await self.send(request)

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Send a prepared request.

        Raises:
            InvalidURLError: If the URL cannot be requested.
            NetworkError: On transport failure.
            HTTPStatusError: On a non-2xx status.
        """
        url = str(request.url)
        _apply_client_defaults(self._client, request)
        with trace_operation(
            "http_request",
            attributes={"http.method": request.method, "http.url": url},
        ) as span:
            try:
                response = await self._client.send(request)
            except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
                self._logger.warning("HTTP request failed", method=request.method, url=url, error=str(e))
                raise ErrorFactory.from_exception(e, url=url) from e

            span.set_attribute("http.status_code", response.status_code)
            self._logger.debug(
                "HTTP request completed",
                method=request.method,
                url=url,
                status_code=response.status_code,
            )
            validate_response(url, response)
            return response
