from abc import abstractmethod
import time
from typing import Any

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.errors.AppError import ProviderError
from shared.helper.HelperConfig import HelperConfig


class HttpClientInterface(ClientInterface):
    """Client talking to a remote JSON API over one shared ``httpx.AsyncClient``.

    Every transport problem surfaces as ProviderError, so callers only ever
    handle the application error taxonomy.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._http: httpx.AsyncClient | None = None
        self.healthcheck_ttl = helper_config.get_number_val(f"{self.get_client_type().upper()}_HEALTHCHECK_TTL", default=60)
        self._last_health: tuple[float, bool] | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """Headers that authenticate every request, e.g. {"Authorization": "Bearer ..."}."""
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        """Root URL all endpoints are appended to."""
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        """Path answered with 2xx while the backend is usable."""
        pass

    def _build_url(self, endpoint: str) -> str:
        path = endpoint.strip().lstrip("/")
        base = self._get_base_url().rstrip("/")
        return f"{base}/{path}" if path else base

    ##########################################
    ############ CORE LIFECYCLE ##############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Open the HTTP client.

        Args:
            transport: Replaces the network transport, e.g. with an ``httpx.MockTransport``.
        """
        self._http = httpx.AsyncClient(timeout=self.timeout, transport=transport, headers=self._get_auth_header())

    async def close(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def do_healthcheck(self) -> bool:
        try:
            response = await self.do_request("GET", endpoint=self._get_endpoint_healthcheck())
            healthy = response.is_success
        except ProviderError as e:
            self.logging.warning("Healthcheck for %s failed: %s", self.get_engine_name(), e.message)
            healthy = False
        self._last_health = (time.monotonic(), healthy)
        return healthy

    async def do_cached_healthcheck(self) -> bool:
        """Like do_healthcheck(), but reuses a result younger than healthcheck_ttl seconds.
        """
        if self._last_health is not None:
            checked_at, healthy = self._last_health
            if time.monotonic() - checked_at < self.healthcheck_ttl:
                return healthy
        return await self.do_healthcheck()

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_request(
        self,
        method: str = "GET",
        endpoint: str = "",
        json: Any = None,
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send one request to the backend.

        Args:
            method: HTTP verb.
            endpoint: Path below the base URL.
            json: Body, serialised as JSON when given.
            additional_headers: Merged over the auth headers.
            raise_on_error: Turn a non-2xx answer into ProviderError instead of returning it.

        Raises:
            ProviderError: If the client is not booted, the request times out or cannot be
                sent, the response cannot be read, or (with raise_on_error) the backend
                answers with a non-2xx status.
        """
        if self._http is None:
            raise ProviderError(f"{self.get_engine_name()} client is not booted.")

        url = self._build_url(endpoint)
        try:
            response = await self._http.request(method, url, json=json, headers=additional_headers)
        except httpx.TimeoutException as e:
            self.logging.error("%s %s timed out after %ss", method, url, self.timeout)
            raise ProviderError(f"Request to {url} timed out.") from e
        except httpx.TransportError as e:
            self.logging.error("%s %s could not be sent: %s", method, url, e)
            raise ProviderError(f"Request to {url} failed: {e}") from e
        except httpx.HTTPError as e:
            self.logging.error("%s %s returned an unreadable response: %s", method, url, e)
            raise ProviderError(f"Request to {url} returned an unreadable response: {e}") from e

        if raise_on_error and not response.is_success:
            body = response.text
            self.logging.error("%s %s answered %d: %s", method, url, response.status_code, body[:200])
            raise ProviderError(
                f"Request to {url} failed with status {response.status_code}: {body}",
                upstream_status=response.status_code,
                upstream_body=body,
            )
        return response
