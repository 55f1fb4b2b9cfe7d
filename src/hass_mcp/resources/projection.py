"""
Per-entity projections.

Three views of a single entity are supported:

- ``filter_fields``: exactly the fields a caller asked for
- ``lean_projection``: state, friendly name and the attributes that matter for
  the entity's domain (the default, token-efficient view)
- ``full_projection``: the record as Home Assistant reported it
"""

from typing import Any

from .models import EntityRecord, get_domain

# Attributes worth showing by default for each domain, in display order.
# Domains missing from this table show no extra attributes.
DOMAIN_IMPORTANT_ATTRIBUTES: dict[str, tuple[str, ...]] = {
    "light": ("brightness", "color_temp", "rgb_color", "supported_color_modes"),
    "switch": ("device_class",),
    "binary_sensor": ("device_class",),
    "sensor": ("device_class", "unit_of_measurement", "state_class"),
    "climate": ("hvac_mode", "current_temperature", "temperature", "hvac_action"),
    "media_player": ("media_title", "media_artist", "source", "volume_level"),
    "cover": ("current_position", "current_tilt_position"),
    "fan": ("percentage", "preset_mode"),
    "camera": ("entity_picture",),
    "automation": ("last_triggered",),
    "scene": (),
    "script": ("last_triggered",),
}

ATTRIBUTE_SELECTOR_PREFIX = "attr."
TIMESTAMP_FIELDS = ("last_updated", "last_changed")


def important_attributes(domain: str) -> tuple[str, ...]:
    """Return the important attribute names for a domain (empty if unknown)."""
    return DOMAIN_IMPORTANT_ATTRIBUTES.get(domain, ())


def lean_fields(domain: str) -> list[str]:
    """Field selectors equivalent to the lean projection of a domain."""
    fields = ["state", f"{ATTRIBUTE_SELECTOR_PREFIX}friendly_name"]
    fields.extend(f"{ATTRIBUTE_SELECTOR_PREFIX}{name}" for name in important_attributes(domain))
    return fields


def _require_entity(entity: EntityRecord | None) -> EntityRecord:
    if entity is None:
        raise ValueError("entity is required")
    return entity


def filter_fields(entity: EntityRecord, fields: list[str] | None) -> dict[str, Any]:
    """
    Reduce an entity to the requested fields.

    Selectors: ``state``, ``attributes`` (whole map), ``attr.<name>`` (single
    attribute, only when present), ``last_updated``, ``last_changed`` and
    ``context``. Unknown selectors are ignored. ``entity_id`` is always kept,
    so an empty or missing selector list yields ``{"entity_id": ...}``.

    Args:
        entity: Entity to project
        fields: Ordered field selectors

    Returns:
        Dictionary holding ``entity_id`` plus the selected fields
    """
    entity = _require_entity(entity)
    result: dict[str, Any] = {"entity_id": entity.entity_id}

    for selector in fields or []:
        if selector == "state":
            result["state"] = entity.state
        elif selector == "attributes":
            result["attributes"] = dict(entity.attributes)
        elif selector.startswith(ATTRIBUTE_SELECTOR_PREFIX) and len(selector) > len(
            ATTRIBUTE_SELECTOR_PREFIX
        ):
            name = selector[len(ATTRIBUTE_SELECTOR_PREFIX):]
            if name in entity.attributes:
                result.setdefault("attributes", {})[name] = entity.attributes[name]
        elif selector in TIMESTAMP_FIELDS:
            value = getattr(entity, selector)
            if value:
                result[selector] = value
        elif selector == "context":
            if entity.context:
                result["context"] = entity.context

    return result


def lean_projection(entity: EntityRecord, domain: str | None = None) -> dict[str, Any]:
    """
    Build the token-efficient view of an entity.

    Always holds ``entity_id`` and ``state``. ``attributes`` carries
    ``friendly_name`` (only when the entity has one) followed by the domain's
    important attributes that are present, in table order.
    """
    entity = _require_entity(entity)
    if domain is None:
        domain = get_domain(entity.entity_id)
    return filter_fields(entity, lean_fields(domain))


def full_projection(entity: EntityRecord) -> dict[str, Any]:
    """Return the entity exactly as it was reported."""
    entity = _require_entity(entity)
    data = entity.model_dump(exclude_unset=True)
    data.setdefault("attributes", {})
    return data
