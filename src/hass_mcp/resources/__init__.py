"""
URI-addressed, read-only views over Home Assistant entity states.
"""

from .models import (
    EmptyResultPolicy,
    EntityRecord,
    FetchFailure,
    ResourceKind,
    ResourceURI,
    StateHistogram,
    get_domain,
)
from .provider import RestStateProvider, StateProvider
from .registration import register_entity_resources
from .router import ResourceRouter, ResourceURIError, parse_resource_uri

__all__ = [
    "EmptyResultPolicy",
    "EntityRecord",
    "FetchFailure",
    "ResourceKind",
    "ResourceRouter",
    "ResourceURI",
    "ResourceURIError",
    "RestStateProvider",
    "StateHistogram",
    "StateProvider",
    "get_domain",
    "parse_resource_uri",
    "register_entity_resources",
]
