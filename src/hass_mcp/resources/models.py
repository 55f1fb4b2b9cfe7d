"""
Typed records shared by the resource layer.

Entity states arrive from Home Assistant as untyped JSON. They are validated
into :class:`EntityRecord` at the provider boundary so the projection and
aggregation code can rely on a well-formed shape.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


def get_domain(entity_id: str) -> str:
    """Return the domain of an entity ID (text before the first '.')."""
    return entity_id.split(".", 1)[0]


def is_valid_entity_id(entity_id: str) -> bool:
    """Check for a printable ``domain.object_id`` with no path separator."""
    domain, sep, object_id = entity_id.partition(".")
    if not sep or not domain or not object_id:
        return False
    return entity_id.isprintable() and "/" not in entity_id


class EntityRecord(BaseModel):
    """One entity state as returned by ``GET /api/states``."""

    model_config = ConfigDict(extra="allow", frozen=True)

    entity_id: str
    state: str | None = None
    attributes: dict[str, Any] = {}
    last_changed: str | None = None
    last_updated: str | None = None
    context: dict[str, Any] | None = None

    @field_validator("entity_id")
    @classmethod
    def validate_entity_id(cls, v: str) -> str:
        if not is_valid_entity_id(v):
            raise ValueError(f"Entity ID must be in format domain.object_id, got '{v}'")
        return v

    @field_validator("state", mode="before")
    @classmethod
    def coerce_state(cls, v: Any) -> Any:
        # Some integrations report bare numbers or booleans
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, bool):
            return "on" if v else "off"
        if isinstance(v, int | float):
            return str(v)
        return v

    @field_validator("attributes", mode="before")
    @classmethod
    def coerce_attributes(cls, v: Any) -> Any:
        return {} if v is None else v

    @property
    def domain(self) -> str:
        return get_domain(self.entity_id)

    @property
    def friendly_name(self) -> str | None:
        name = self.attributes.get("friendly_name")
        return None if name is None else str(name)


class ResourceKind(StrEnum):
    """The views addressable under the ``hass://`` scheme."""

    ENTITY_DETAIL = "entity_detail"
    ENTITY_DETAIL_VERBOSE = "entity_detail_verbose"
    ALL_ENTITIES = "all_entities"
    DOMAIN_LISTING = "domain_listing"
    DOMAIN_SUMMARY = "domain_summary"
    SEARCH = "search"


class EmptyResultPolicy(StrEnum):
    """How a view reports a filter that matched nothing.

    Domain views treat an empty match as an error; search and the full listing
    report it as a successful, empty answer.
    """

    ERROR = "error"
    MESSAGE = "message"


EMPTY_RESULT_POLICIES: dict[ResourceKind, EmptyResultPolicy] = {
    ResourceKind.ALL_ENTITIES: EmptyResultPolicy.MESSAGE,
    ResourceKind.DOMAIN_LISTING: EmptyResultPolicy.ERROR,
    ResourceKind.DOMAIN_SUMMARY: EmptyResultPolicy.ERROR,
    ResourceKind.SEARCH: EmptyResultPolicy.MESSAGE,
}


@dataclass(frozen=True)
class ResourceURI:
    """A parsed ``hass://`` request."""

    kind: ResourceKind
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FetchFailure:
    """A state fetch that could not be satisfied.

    ``error`` keeps the client exception, when there was one, for callers that
    report failures in their own format.
    """

    message: str
    status_code: int | None = None
    error: Exception | None = field(default=None, compare=False, repr=False)


@dataclass
class StateHistogram:
    """Per-state counts and example entities for a set of entities."""

    total: int = 0
    state_counts: dict[str, int] = field(default_factory=dict)
    state_examples: dict[str, list[dict[str, str]]] = field(default_factory=dict)
