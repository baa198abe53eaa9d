"""Supabase-backed thing repository."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar

import httpx
from supabase import Client, PostgrestAPIError

from things_together.domain.errors import StoreError
from things_together.domain.things import Thing, ThingStatus
from things_together.services.things import ThingRepository

_COLUMNS = "id, title, notes, status, created_at, done_at, photo_url, added_by"
_ORDER_COLUMNS = {
    ThingStatus.PLANNED: "created_at",
    ThingStatus.DONE: "done_at",
}

R = TypeVar("R")


def run_query(action: str, query: Callable[[], R]) -> R:
    """Run a query, converting transport and API failures to StoreError."""
    try:
        return query()
    except (PostgrestAPIError, httpx.HTTPError) as exc:
        raise StoreError(f"Failed to {action}: {exc}") from exc


def parse_timestamp(value: object) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def parse_row(
    kind: str, row: dict[str, object], parse: Callable[[dict[str, object]], R]
) -> R:
    """Build a domain object from a row, reporting malformed rows as StoreError."""
    try:
        return parse(row)
    except (KeyError, TypeError, ValueError) as exc:
        raise StoreError(f"Malformed {kind} row: {exc!r}") from exc


def _row_to_thing(row: dict[str, object]) -> Thing:
    return parse_row("thing", row, _build_thing)


def _build_thing(row: dict[str, object]) -> Thing:
    created_at = parse_timestamp(row.get("created_at"))
    if created_at is None:
        raise StoreError(f"Thing {row['id']} has no creation time")
    return Thing(
        id=str(row["id"]),
        title=str(row["title"]),
        notes=row.get("notes") or None,
        status=ThingStatus(row["status"]),
        created_at=created_at,
        added_by=str(row.get("added_by") or ""),
        done_at=parse_timestamp(row.get("done_at")),
        photo_url=row.get("photo_url") or None,
    )


@dataclass
class SupabaseThingRepository(ThingRepository):
    """Supabase implementation for things."""

    client: Client

    def create_thing(self, title: str, added_by: str, notes: str | None) -> str:
        """Insert a planned thing; the database assigns id and created_at."""
        response = run_query(
            "create thing",
            lambda: self.client.table("things")
            .insert(
                {
                    "title": title,
                    "notes": notes,
                    "status": ThingStatus.PLANNED.value,
                    "added_by": added_by,
                }
            )
            .execute(),
        )
        if not response.data:
            raise StoreError("Failed to create thing in Supabase")
        return str(response.data[0]["id"])

    def list_by_status(self, status: ThingStatus) -> list[Thing]:
        """Return things with a status, newest first."""
        response = run_query(
            f"list {status.value} things",
            lambda: self.client.table("things")
            .select(_COLUMNS)
            .eq("status", status.value)
            .order(_ORDER_COLUMNS[status], desc=True)
            .execute(),
        )
        return [_row_to_thing(row) for row in response.data or []]

    def get_thing(self, thing_id: str) -> Thing | None:
        """Return a thing by id, if present."""
        response = run_query(
            "get thing",
            lambda: self.client.table("things")
            .select(_COLUMNS)
            .eq("id", thing_id)
            .limit(1)
            .execute(),
        )
        if not response.data:
            return None
        return _row_to_thing(response.data[0])

    def mark_done(
        self, thing_id: str, done_at: datetime, photo_url: str | None
    ) -> bool:
        """Set status and completion time, and the photo when provided."""
        payload: dict[str, object] = {
            "status": ThingStatus.DONE.value,
            "done_at": done_at.isoformat(),
        }
        if photo_url:
            payload["photo_url"] = photo_url
        response = run_query(
            "mark thing done",
            lambda: self.client.table("things")
            .update(payload)
            .eq("id", thing_id)
            .execute(),
        )
        return bool(response.data)

    def set_photo(self, thing_id: str, photo_url: str) -> bool:
        """Set the photo URL of a thing."""
        response = run_query(
            "attach photo",
            lambda: self.client.table("things")
            .update({"photo_url": photo_url})
            .eq("id", thing_id)
            .execute(),
        )
        return bool(response.data)
