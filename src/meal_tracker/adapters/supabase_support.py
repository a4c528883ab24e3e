"""Helpers shared by the Supabase repositories."""

from datetime import date
from typing import Any, Protocol

import httpx
from postgrest.exceptions import APIError

from meal_tracker.domain.errors import StorageError


class QueryResponse(Protocol):
    """Response returned by an executed PostgREST request."""

    data: Any


class ExecutableQuery(Protocol):
    """A PostgREST table or rpc request builder."""

    def execute(self) -> QueryResponse:
        """Send the request."""


def execute(query: ExecutableQuery, action: str) -> QueryResponse:
    """Execute a PostgREST query, translating client failures to StorageError."""
    try:
        return query.execute()
    except (APIError, httpx.HTTPError) as exc:
        raise StorageError(f"Storage {action} failed") from exc


def parse_date(value: object) -> date | None:
    """Parse a date column returned by PostgREST."""
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        return date.fromisoformat(value[:10])
    return None
