"""
State providers feeding the resource layer.

A provider returns either validated entity records or a :class:`FetchFailure`;
it never raises for upstream problems. Timeouts and connection errors come
from the HTTP client and are reported the same way as any other failure.
"""

import logging
from typing import Any, Protocol

from pydantic import ValidationError

from ..client.rest_client import (
    HomeAssistantAPIError,
    HomeAssistantError,
)
from .models import EntityRecord, FetchFailure

logger = logging.getLogger(__name__)


class StateProvider(Protocol):
    """Source of entity state snapshots."""

    async def fetch_all_entities(self) -> list[EntityRecord] | FetchFailure: ...

    async def fetch_entity(self, entity_id: str) -> EntityRecord | FetchFailure: ...


def parse_entity_records(raw_states: list[Any]) -> list[EntityRecord]:
    """
    Validate raw state dictionaries, dropping malformed ones.

    Dropped records are logged at WARNING so a broken integration is visible
    without failing the whole snapshot.
    """
    records: list[EntityRecord] = []
    quarantined = 0
    for raw in raw_states:
        try:
            records.append(EntityRecord.model_validate(raw))
        except ValidationError as e:
            quarantined += 1
            entity_id = raw.get("entity_id") if isinstance(raw, dict) else None
            logger.debug(f"Skipping malformed state {entity_id!r}: {e}")
    if quarantined:
        logger.warning(f"Skipped {quarantined} malformed entity state(s)")
    return records


def _failure_from_exception(error: Exception) -> FetchFailure:
    status_code = error.status_code if isinstance(error, HomeAssistantAPIError) else None
    return FetchFailure(message=str(error), status_code=status_code, error=error)


class RestStateProvider:
    """State provider backed by :class:`HomeAssistantClient`."""

    def __init__(self, client: Any) -> None:
        self.client = client

    async def fetch_all_entities(self) -> list[EntityRecord] | FetchFailure:
        try:
            raw_states = await self.client.get_states()
        except HomeAssistantError as e:
            logger.warning(f"Failed to fetch entity states: {e}")
            return _failure_from_exception(e)
        return parse_entity_records(raw_states)

    async def fetch_entity(self, entity_id: str) -> EntityRecord | FetchFailure:
        try:
            raw_state = await self.client.get_entity_state(entity_id)
        except HomeAssistantError as e:
            logger.warning(f"Failed to fetch state for {entity_id}: {e}")
            return _failure_from_exception(e)

        try:
            return EntityRecord.model_validate(raw_state)
        except ValidationError as e:
            logger.warning(f"Malformed state returned for {entity_id}: {e}")
            return FetchFailure(message=f"Malformed state returned for '{entity_id}'")
