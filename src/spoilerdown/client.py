"""HTTP client for the entity REST API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import httpx

from spoilerdown.embeds.types import ENTITY_TYPES, EntityType
from spoilerdown.errors import EntityFetchError
from spoilerdown.observability.logging import get_logger

if TYPE_CHECKING:
    from types import TracebackType

log = get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost:3001/api"
DEFAULT_TIMEOUT = 10.0


@runtime_checkable
class EntityFetcher(Protocol):
    """Anything that can look up an entity by type and id."""

    async def fetch_entity(self, entity_type: EntityType, entity_id: int) -> dict[str, Any] | None:
        """Return the entity payload, or None when it does not exist."""
        ...


class EntityApiClient:
    """Fetches entity records from the REST API.

    Args:
        base_url: API root, e.g. ``http://localhost:3001/api``.
        timeout: Request timeout in seconds; None disables it.
        token: Bearer token sent with every request, if set.
        transport: Custom httpx transport (used by tests).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float | None = DEFAULT_TIMEOUT,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport)

    @property
    def base_url(self) -> str:
        return self._base_url

    def url_for(self, entity_type: EntityType, entity_id: int) -> str:
        """API URL of one entity."""
        return f"{self._base_url}/{ENTITY_TYPES[entity_type].endpoint}/{entity_id}"

    async def fetch_entity(self, entity_type: EntityType, entity_id: int) -> dict[str, Any] | None:
        """GET one entity.

        Args:
            entity_type: Embed type; selects the collection endpoint.
            entity_id: Entity id.

        Returns:
            The decoded JSON object, or None on 404 or an empty body.

        Raises:
            EntityFetchError: On connection failure, timeout, a non-2xx
                status other than 404, or a body that is not a JSON object.
        """
        url = self.url_for(entity_type, entity_id)
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as e:
            raise EntityFetchError(entity_type, entity_id, f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            raise EntityFetchError(entity_type, entity_id, f"Request failed: {e}") from e

        if response.status_code == 404:
            log.debug("entity_missing", entity_type=entity_type, entity_id=entity_id)
            return None
        if not response.is_success:
            raise EntityFetchError(
                entity_type,
                entity_id,
                f"API error (status {response.status_code})",
                status_code=response.status_code,
            )
        if not response.content.strip():
            return None

        try:
            data = response.json()
        except ValueError as e:
            raise EntityFetchError(entity_type, entity_id, f"Invalid JSON response: {e}") from e

        if data is None:
            return None
        if not isinstance(data, dict):
            raise EntityFetchError(
                entity_type, entity_id, f"Expected a JSON object, got {type(data).__name__}"
            )
        return data or None

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> EntityApiClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
