"""
Resolution of ``hass://`` resource URIs.

Supported URIs::

    hass://entities
    hass://entities/{entity_id}
    hass://entities/{entity_id}/detailed
    hass://entities/domain/{domain}
    hass://entities/domain/{domain}/summary
    hass://search/{url-encoded query}[/{limit}]

``ResourceRouter.resolve`` always returns a Markdown document. Malformed URIs
and upstream failures are rendered as text instead of being raised.
"""

import logging
from urllib.parse import unquote

from . import handlers
from .models import ResourceKind, ResourceURI, is_valid_entity_id
from .provider import StateProvider

logger = logging.getLogger(__name__)

SCHEME = "hass"
DEFAULT_SEARCH_LIMIT = 20


class ResourceURIError(ValueError):
    """Raised when a URI does not address a known resource."""

    def __init__(self, message: str, uri: str) -> None:
        super().__init__(message)
        self.uri = uri


class EmptySearchQueryError(ResourceURIError):
    """Raised when a search URI carries no usable query."""


def parse_limit(raw: str | None, default: int = DEFAULT_SEARCH_LIMIT) -> int:
    """Parse a positive integer limit, falling back to ``default``."""
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value > 0 else default


def _entity_id_param(raw: str, uri: str) -> dict[str, str]:
    entity_id = unquote(raw)
    if not is_valid_entity_id(entity_id):
        raise ResourceURIError("Invalid entity ID", uri)
    return {"entity_id": entity_id}


def _split_uri(uri: str) -> tuple[str, list[str]]:
    scheme, sep, rest = uri.partition("://")
    if not sep:
        scheme, sep, rest = uri.partition(":")
    if not sep:
        return "", []
    return scheme, rest.split("/")


def parse_resource_uri(uri: str, default_limit: int = DEFAULT_SEARCH_LIMIT) -> ResourceURI:
    """
    Classify a ``hass://`` URI.

    Args:
        uri: URI to parse
        default_limit: Search limit used when none (or an invalid one) is given

    Returns:
        Parsed resource kind and parameters

    Raises:
        ResourceURIError: Unknown scheme or path shape, or an invalid entity ID
        EmptySearchQueryError: Search query empty after decoding
    """
    scheme, segments = _split_uri(uri.strip())
    if scheme != SCHEME:
        raise ResourceURIError(f"Unknown protocol '{scheme}'" if scheme else "Unknown protocol", uri)

    # Trailing slashes do not change the addressed resource
    while len(segments) > 1 and segments[-1] == "":
        segments.pop()

    if segments and all(segments):
        match segments:
            case ["entities"]:
                return ResourceURI(ResourceKind.ALL_ENTITIES)
            case ["entities", "domain", domain]:
                return ResourceURI(ResourceKind.DOMAIN_LISTING, {"domain": unquote(domain)})
            case ["entities", "domain", domain, "summary"]:
                return ResourceURI(ResourceKind.DOMAIN_SUMMARY, {"domain": unquote(domain)})
            case ["entities", entity_id]:
                return ResourceURI(ResourceKind.ENTITY_DETAIL, _entity_id_param(entity_id, uri))
            case ["entities", entity_id, "detailed"]:
                return ResourceURI(
                    ResourceKind.ENTITY_DETAIL_VERBOSE, _entity_id_param(entity_id, uri)
                )
            case ["search", query, *rest] if len(rest) <= 1:
                decoded = unquote(query)
                if not decoded.strip():
                    raise EmptySearchQueryError("No search query provided", uri)
                limit = parse_limit(rest[0] if rest else None, default_limit)
                return ResourceURI(ResourceKind.SEARCH, {"query": decoded, "limit": limit})

    # hass://search/ or hass://search//10
    if segments[:1] == ["search"] and len(segments) <= 3:
        raise EmptySearchQueryError("No search query provided", uri)

    raise ResourceURIError("Unknown resource URI pattern", uri)


def render_uri_error(error: ResourceURIError) -> str:
    """Render a URI problem as a Markdown document echoing the input."""
    if isinstance(error, EmptySearchQueryError):
        return f"# Entity Search\n\nError: {error}\n"
    return f"# Invalid Resource URI\n\nError: {error}: `{error.uri}`\n"


class ResourceRouter:
    """Dispatch ``hass://`` URIs to their handlers over one state snapshot."""

    def __init__(
        self,
        provider: StateProvider,
        default_search_limit: int = DEFAULT_SEARCH_LIMIT,
        preview_limit: int = handlers.ALL_ENTITIES_PREVIEW_LIMIT,
    ) -> None:
        self.provider = provider
        self.default_search_limit = default_search_limit
        self.preview_limit = preview_limit

    async def resolve(self, uri: str) -> str:
        """Resolve a URI to its Markdown document."""
        try:
            resource = parse_resource_uri(uri, self.default_search_limit)
        except ResourceURIError as e:
            logger.info(f"Rejected resource URI {uri!r}: {e}")
            return render_uri_error(e)

        logger.debug(f"Resolving {resource.kind} with {resource.params}")
        return await self.dispatch(resource)

    async def dispatch(self, resource: ResourceURI) -> str:
        """Fetch once from the provider and render the requested view."""
        params = resource.params

        match resource.kind:
            case ResourceKind.ENTITY_DETAIL:
                entity = await self.provider.fetch_entity(params["entity_id"])
                return handlers.render_entity_detail(params["entity_id"], entity)
            case ResourceKind.ENTITY_DETAIL_VERBOSE:
                entity = await self.provider.fetch_entity(params["entity_id"])
                return handlers.render_entity_detail_verbose(params["entity_id"], entity)

        snapshot = await self.provider.fetch_all_entities()

        match resource.kind:
            case ResourceKind.ALL_ENTITIES:
                return handlers.render_all_entities(snapshot, self.preview_limit)
            case ResourceKind.DOMAIN_LISTING:
                return handlers.render_domain_listing(params["domain"], snapshot)
            case ResourceKind.DOMAIN_SUMMARY:
                return handlers.render_domain_summary(params["domain"], snapshot)
            case ResourceKind.SEARCH:
                return handlers.render_search(params["query"], params["limit"], snapshot)

        raise ValueError(f"Unhandled resource kind: {resource.kind}")
