from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EventActor(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field("", alias="ID")
    attributes: dict[str, str] | None = Field(None, alias="Attributes")


class ContainerEvent(BaseModel):
    """One message from the docker engine /events stream."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str = Field("", alias="Type")
    action: str = Field("", alias="Action")
    # Legacy top-level id; newer engine API versions only send Actor.ID.
    id: str = ""
    actor: EventActor = Field(default_factory=EventActor, alias="Actor")

    @classmethod
    def parse(cls, raw: dict[str, Any]) -> "ContainerEvent":
        return cls.model_validate(raw)

    @property
    def subject_id(self) -> str:
        return self.id or self.actor.id


def extract_containers(event: ContainerEvent) -> list[str]:
    """Container ids an event refers to, deduplicated and sorted.

    Events against sub-resources (exec sessions, networks) carry the parent
    container in the "container" actor attribute.
    """
    ids: set[str] = set()
    if event.type == "container" and event.subject_id:
        ids.add(event.subject_id)
    attrs = event.actor.attributes or {}
    if attrs.get("container"):
        ids.add(attrs["container"])
    return sorted(ids)
