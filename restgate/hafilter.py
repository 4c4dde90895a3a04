"""Filtering and summarising of home automation entity states."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Sequence


@dataclass
class EntityState:
    """The state of one entity as reported by the home automation service."""

    entity_id: str
    state: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)
    last_updated: Optional[datetime] = None
    last_changed: Optional[datetime] = None

    @property
    def name(self) -> str:
        """The friendly name, or the entity id when there is none."""
        return str(self.attributes.get("friendly_name") or self.entity_id)

    @property
    def domain(self) -> str:
        """The part of the entity id before the first dot."""
        return self.entity_id.partition(".")[0]

    @property
    def device_class(self) -> str:
        """The device class, or the domain when there is none."""
        return str(self.attributes.get("device_class") or self.domain)

    @property
    def value(self) -> str:
        """The state value."""
        return self.state

    @property
    def unit_of_measurement(self) -> str:
        """The unit the state is measured in, or ""."""
        return str(self.attributes.get("unit_of_measurement") or "")


@dataclass
class Entity:
    """An entity state prepared for display."""

    id: str
    name: str = ""
    device_class: str = ""
    domain: str = ""
    state: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)
    updated_at: Optional[datetime] = None
    changed_at: Optional[datetime] = None


@dataclass
class DomainSummary:
    """A class of entities and the services its domain offers."""

    name: str
    services: str = ""


def match_string(query: str, *args: str) -> bool:
    """Return True if any of args contains query, ignoring case."""
    needle = query.lower()
    return any(needle in value.lower() for value in args)


def filter_states(
    states: Iterable[EntityState], name: str = "", domains: Sequence[str] = ()
) -> list[Entity]:
    """Return entities with a state, filtered by name and by domain or class.

    A non-empty name must appear in the entity's name or id; non-empty
    domains must contain the entity's domain or class. The unit of
    measurement, if any, is appended to the state.
    """
    result: list[Entity] = []
    for state in states:
        entity = Entity(
            id=state.entity_id,
            name=state.name,
            device_class=state.device_class,
            domain=state.domain,
            state=state.value,
            attributes=state.attributes,
            updated_at=state.last_updated,
            changed_at=state.last_changed,
        )
        if not entity.state:
            continue
        if name and not match_string(name, entity.name, entity.id):
            continue
        if domains and entity.domain not in domains and entity.device_class not in domains:
            continue
        unit = state.unit_of_measurement
        if unit:
            entity.state += " " + unit
        result.append(entity)
    return result


def summarize_domains(
    entities: Iterable[Entity], services: Mapping[str, Iterable[str]]
) -> list[DomainSummary]:
    """Return each entity class once, with the services of the domain of that name."""
    classes = dict.fromkeys(entity.device_class for entity in entities)
    return [
        DomainSummary(name=cls, services=", ".join(services.get(cls) or ()))
        for cls in classes
    ]