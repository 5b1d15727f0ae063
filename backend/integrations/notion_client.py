"""Notion REST API implementation of the DocumentStore protocol."""

import logging
from typing import Any, Optional

import httpx

from integrations.document_store import (
    DEFAULT_PAGE_SIZE,
    And,
    CheckboxEquals,
    DateOnOrAfter,
    DateOnOrBefore,
    Filter,
    Or,
    QueryPage,
    SortSpec,
    StoreRecord,
    TextEquals,
)
from integrations.exceptions import ProviderAuthError
from integrations.http_utils import send_request

logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"


def filter_to_notion(f: Filter) -> dict[str, Any]:
    """Translate a filter expression into Notion's query filter JSON."""
    if isinstance(f, DateOnOrAfter):
        return {"property": f.field, "date": {"on_or_after": f.value}}
    if isinstance(f, DateOnOrBefore):
        return {"property": f.field, "date": {"on_or_before": f.value}}
    if isinstance(f, CheckboxEquals):
        return {"property": f.field, "checkbox": {"equals": f.value}}
    if isinstance(f, TextEquals):
        return {"property": f.field, "rich_text": {"equals": f.value}}
    if isinstance(f, And):
        return {"and": [filter_to_notion(c) for c in f.clauses]}
    if isinstance(f, Or):
        return {"or": [filter_to_notion(c) for c in f.clauses]}
    raise TypeError(f"Unsupported filter: {f!r}")


def _to_record(page: dict[str, Any]) -> StoreRecord:
    return StoreRecord(id=page["id"], properties=page.get("properties") or {})


class NotionClient:
    """DocumentStore backed by the Notion API.

    Every call is a single request; pagination is driven by the caller
    through ``cursor`` / ``next_cursor``.
    """

    def __init__(self, token: str, timeout: Optional[float] = None):
        """Initialize with an integration token.

        Args:
            token: Notion internal integration secret.
            timeout: Optional per-request timeout in seconds. ``None``
                     means no timeout.

        Raises:
            ProviderAuthError: If the token is empty.
        """
        if not token:
            raise ProviderAuthError("Notion token is not configured", provider_name="notion")
        self._client = httpx.Client(
            base_url=NOTION_API_URL,
            headers={
                "Authorization": f"Bearer {token}",
                "Notion-Version": NOTION_VERSION,
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    @property
    def provider_name(self) -> str:
        return "notion"

    def _call(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        response = send_request(self._client, method, path, self.provider_name, **kwargs)
        return response.json()

    def query(
        self,
        database_id: str,
        filter: Optional[Filter] = None,
        sorts: Optional[list[SortSpec]] = None,
        cursor: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> QueryPage:
        body: dict[str, Any] = {"page_size": min(max(page_size, 1), DEFAULT_PAGE_SIZE)}
        if filter is not None:
            body["filter"] = filter_to_notion(filter)
        if sorts:
            body["sorts"] = [
                {"property": s.field, "direction": "ascending" if s.ascending else "descending"}
                for s in sorts
            ]
        if cursor:
            body["start_cursor"] = cursor

        data = self._call("POST", f"/databases/{database_id}/query", json=body)
        records = [_to_record(page) for page in data.get("results", [])]
        next_cursor = data.get("next_cursor") if data.get("has_more", True) else None
        logger.debug(
            "Notion: query %s returned %d rows (more=%s)",
            database_id, len(records), bool(next_cursor),
        )
        return QueryPage(records=records, next_cursor=next_cursor or None)

    def retrieve(self, record_id: str) -> StoreRecord:
        return _to_record(self._call("GET", f"/pages/{record_id}"))

    def create(self, database_id: str, properties: dict[str, Any]) -> StoreRecord:
        data = self._call(
            "POST",
            "/pages",
            json={"parent": {"database_id": database_id}, "properties": properties},
        )
        return _to_record(data)

    def update(self, record_id: str, properties: dict[str, Any]) -> StoreRecord:
        data = self._call("PATCH", f"/pages/{record_id}", json={"properties": properties})
        return _to_record(data)

    def retrieve_database(self, database_id: str) -> dict[str, Any]:
        data = self._call("GET", f"/databases/{database_id}")
        return data.get("properties") or {}

    def update_database(self, database_id: str, properties: dict[str, Any]) -> None:
        self._call("PATCH", f"/databases/{database_id}", json={"properties": properties})
