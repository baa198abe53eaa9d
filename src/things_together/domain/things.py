"""Domain models for shared things."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class ThingStatus(StrEnum):
    """Lifecycle status of a thing."""

    PLANNED = "planned"
    DONE = "done"


@dataclass(frozen=True)
class Thing:
    """A planned or completed shared activity."""

    id: str
    title: str
    notes: str | None
    status: ThingStatus
    created_at: datetime
    added_by: str
    done_at: datetime | None = None
    photo_url: str | None = None

    @property
    def is_done(self) -> bool:
        return self.status is ThingStatus.DONE
