"""
Home Assistant HTTP client with authentication and error handling.
"""

import logging
from typing import Any

import httpx

from ..config import get_global_settings

logger = logging.getLogger(__name__)


class HomeAssistantError(Exception):
    """Base exception for Home Assistant API errors."""


class HomeAssistantConnectionError(HomeAssistantError):
    """Connection error to Home Assistant."""


class HomeAssistantAuthError(HomeAssistantError):
    """Authentication error with Home Assistant."""


class HomeAssistantAPIError(HomeAssistantError):
    """API error from Home Assistant."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class HomeAssistantClient:
    """Authenticated HTTP client for the Home Assistant REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize Home Assistant client.

        Args:
            base_url: Home Assistant URL (defaults to config)
            token: Long-lived access token (defaults to config)
            timeout: Request timeout in seconds (defaults to config)
            transport: Optional httpx transport, used by tests
        """
        # Only load settings if we need to use fallback values
        if base_url is None or token is None:
            settings = get_global_settings()
            self.base_url = (base_url or settings.homeassistant_url).rstrip("/")
            self.token = token or settings.homeassistant_token
            self.timeout = timeout if timeout is not None else settings.timeout
        else:
            self.base_url = base_url.rstrip("/")
            self.token = token
            self.timeout = timeout if timeout is not None else 30

        self.httpx_client = httpx.AsyncClient(
            base_url=f"{self.base_url}/api",
            headers={
                "Authorization": f"Bearer {self.token}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(self.timeout),
            transport=transport,
        )

        logger.info(f"Initialized Home Assistant client for {self.base_url}")

    async def __aenter__(self) -> "HomeAssistantClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close HTTP client."""
        await self.httpx_client.aclose()
        logger.debug("Closed Home Assistant client")

    async def _send(self, method: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        """
        Send an authenticated request and map failures to client exceptions.

        Raises:
            HomeAssistantConnectionError: Connection failed or timed out
            HomeAssistantAuthError: Authentication failed
            HomeAssistantAPIError: API returned an error status, or the URL is invalid
        """
        logger.debug(f"{method} {endpoint}")
        try:
            response = await self.httpx_client.request(method, endpoint, **kwargs)
        except httpx.InvalidURL as e:
            raise HomeAssistantAPIError(f"Invalid request URL: {e}") from e
        except httpx.ConnectError as e:
            raise HomeAssistantConnectionError(
                f"Failed to connect to Home Assistant: {e}"
            ) from e
        except httpx.TimeoutException as e:
            raise HomeAssistantConnectionError(f"Request timeout: {e}") from e
        except httpx.HTTPError as e:
            raise HomeAssistantConnectionError(f"HTTP error: {e}") from e

        if response.status_code == 401:
            raise HomeAssistantAuthError("Invalid authentication token")

        if response.status_code >= 400:
            try:
                error_data = response.json()
                if not isinstance(error_data, dict):
                    error_data = {"message": str(error_data)}
            except ValueError:
                error_data = {"message": response.text or response.reason_phrase}

            raise HomeAssistantAPIError(
                f"API error: {response.status_code} - {error_data.get('message', 'Unknown error')}",
                status_code=response.status_code,
                response_data=error_data,
            )

        return response

    async def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """
        Make authenticated request and decode the JSON body.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (without /api prefix)
            **kwargs: Additional arguments for httpx request

        Returns:
            Decoded JSON (dict or list); empty dict for empty bodies

        Raises:
            HomeAssistantAPIError: Body is not valid JSON (e.g. a proxy login page)
        """
        response = await self._send(method, endpoint, **kwargs)
        if not response.content.strip():
            # Some endpoints return empty responses
            return {}
        try:
            return response.json()
        except ValueError as e:
            # Also covers bodies that are not decodable text
            raise HomeAssistantAPIError(
                f"Invalid JSON response from {endpoint}", status_code=response.status_code
            ) from e

    async def _request_text(self, method: str, endpoint: str, **kwargs: Any) -> str:
        """Make authenticated request and return the raw response body."""
        response = await self._send(method, endpoint, **kwargs)
        return response.text

    async def get_api_status(self) -> dict[str, Any]:
        """Check that the API is reachable ('API running.' message)."""
        logger.debug("Checking Home Assistant API status")
        result = await self._request("GET", "/")
        return result if isinstance(result, dict) else {}

    async def get_config(self) -> dict[str, Any]:
        """Get Home Assistant configuration."""
        logger.debug("Fetching Home Assistant configuration")
        result = await self._request("GET", "/config")
        return result if isinstance(result, dict) else {}

    async def get_states(self) -> list[dict[str, Any]]:
        """Get all entity states."""
        logger.debug("Fetching all entity states")
        result = await self._request("GET", "/states")
        if not isinstance(result, list):
            raise HomeAssistantAPIError("Unexpected response from /states")
        return result

    async def get_entity_state(self, entity_id: str) -> dict[str, Any]:
        """
        Get specific entity state.

        Args:
            entity_id: Entity ID (e.g., 'light.living_room')

        Returns:
            Entity state data
        """
        logger.debug(f"Fetching state for entity: {entity_id}")
        result = await self._request("GET", f"/states/{entity_id}")
        return result if isinstance(result, dict) else {}

    async def call_service(
        self, domain: str, service: str, data: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """
        Call Home Assistant service.

        Args:
            domain: Service domain (e.g., 'light', 'climate')
            service: Service name (e.g., 'turn_on', 'set_temperature')
            data: Optional service data

        Returns:
            List of states that changed while the service was being executed
        """
        logger.debug(f"Calling service {domain}.{service}")
        result = await self._request(
            "POST", f"/services/{domain}/{service}", json=data or {}
        )
        if isinstance(result, list):
            return result
        return []

    async def get_services(self) -> list[dict[str, Any]]:
        """Get all available services, one entry per domain."""
        logger.debug("Fetching available services")
        result = await self._request("GET", "/services")
        if isinstance(result, list):
            return result
        return []

    async def get_events(self) -> list[dict[str, Any]]:
        """Get event types and their listener counts."""
        logger.debug("Fetching event listeners")
        result = await self._request("GET", "/events")
        if isinstance(result, list):
            return result
        return []

    async def get_history(
        self,
        entity_id: str | None = None,
        start_time: str | None = None,
        end_time: str | None = None,
        minimal_response: bool = False,
    ) -> list[list[dict[str, Any]]]:
        """
        Get historical data.

        Args:
            entity_id: Optional entity ID to filter
            start_time: Optional start time (ISO format), sent as a path component
            end_time: Optional end time (ISO format)
            minimal_response: Only return last_changed and state for intermediate states

        Returns:
            One list of state changes per entity
        """
        logger.debug(f"Fetching history for entity: {entity_id}")

        endpoint = "/history/period"
        if start_time:
            endpoint += f"/{start_time}"

        params: dict[str, str] = {}
        if entity_id:
            params["filter_entity_id"] = entity_id
        if end_time:
            params["end_time"] = end_time
        if minimal_response:
            params["minimal_response"] = "true"

        result = await self._request("GET", endpoint, params=params)
        if isinstance(result, list):
            return result
        return []

    async def get_logbook(
        self,
        entity_id: str | None = None,
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Get logbook entries.

        Args:
            entity_id: Optional entity ID to filter
            start_time: Optional start time (ISO format) - used as URL path component
            end_time: Optional end time (ISO format) - used as query parameter

        Returns:
            Logbook entries
        """
        logger.debug(f"Fetching logbook entries for entity: {entity_id}, start: {start_time}, end: {end_time}")

        endpoint = f"/logbook/{start_time}" if start_time else "/logbook"

        params: dict[str, str] = {}
        if entity_id:
            params["entity"] = entity_id
        if end_time:
            params["end_time"] = end_time

        result = await self._request("GET", endpoint, params=params)
        if isinstance(result, list):
            return result
        return []

    async def get_error_log(self) -> str:
        """Get the plain-text error log of the current session."""
        logger.debug("Fetching error log")
        return await self._request_text("GET", "/error_log")

    async def render_template(self, template: str) -> str:
        """Render a Home Assistant template and return the result as text."""
        logger.debug("Rendering template")
        return await self._request_text("POST", "/template", json={"template": template})
