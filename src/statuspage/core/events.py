"""Events pushed to live viewers.

Each event type is its own model carrying the full entity it refers to,
and ``StatusEvent`` is the closed union of them, discriminated on
``type``. Deleted events carry the last snapshot of the removed entity.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from statuspage.core.domain_types import Incident, IncidentUpdate, Service


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class ServiceCreated(_Event):
    type: Literal["service_created"] = "service_created"
    service: Service


class ServiceUpdated(_Event):
    type: Literal["service_updated"] = "service_updated"
    service: Service


class ServiceDeleted(_Event):
    type: Literal["service_deleted"] = "service_deleted"
    service: Service


class IncidentCreated(_Event):
    type: Literal["incident_created"] = "incident_created"
    incident: Incident


class IncidentUpdated(_Event):
    type: Literal["incident_updated"] = "incident_updated"
    incident: Incident


class IncidentDeleted(_Event):
    type: Literal["incident_deleted"] = "incident_deleted"
    incident: Incident


class IncidentUpdateCreated(_Event):
    type: Literal["incident_update_created"] = "incident_update_created"
    update: IncidentUpdate
    incident: Incident


class Connected(_Event):
    """Acknowledgment sent to a viewer right after it subscribes."""

    type: Literal["connected"] = "connected"
    message: str = "Connected to Status Page WebSocket"


class Pong(_Event):
    """Reply to a viewer's ping. Never broadcast."""

    type: Literal["pong"] = "pong"


StatusEvent = Annotated[
    ServiceCreated
    | ServiceUpdated
    | ServiceDeleted
    | IncidentCreated
    | IncidentUpdated
    | IncidentDeleted
    | IncidentUpdateCreated,
    Field(discriminator="type"),
]

ControlEvent = Connected | Pong


def serialize_event(event: StatusEvent | ControlEvent) -> str:
    """Serialize an event to the JSON text sent over the wire."""
    return event.model_dump_json()
