"""Document store protocol definitions.

The holdings, snapshots, transactions and asset-log tables all live in an
external document database. Services talk to it only through the
:class:`DocumentStore` protocol defined here; the Notion implementation is
in :mod:`integrations.notion_client` and tests use an in-memory fake.

Fields are addressed by their configurable display names and carry the
store's typed property payloads (see :mod:`integrations.notion_properties`).
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Union

DEFAULT_PAGE_SIZE = 100


# ---------------------------------------------------------------------------
# Filter algebra
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class DateOnOrAfter:
    field: str
    value: str  # ISO date


@dataclass(frozen=True)
class DateOnOrBefore:
    field: str
    value: str  # ISO date


@dataclass(frozen=True)
class CheckboxEquals:
    field: str
    value: bool


@dataclass(frozen=True)
class TextEquals:
    field: str
    value: str


@dataclass(frozen=True)
class And:
    clauses: tuple["Filter", ...]


@dataclass(frozen=True)
class Or:
    clauses: tuple["Filter", ...]


Filter = Union[DateOnOrAfter, DateOnOrBefore, CheckboxEquals, TextEquals, And, Or]


def all_of(*clauses: Optional[Filter]) -> Optional[Filter]:
    """Combine the non-None clauses with AND; a single clause is returned as-is."""
    present = tuple(c for c in clauses if c is not None)
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return And(present)


@dataclass(frozen=True)
class SortSpec:
    field: str
    ascending: bool = True


# ---------------------------------------------------------------------------
# Records and pages
# ---------------------------------------------------------------------------
@dataclass
class StoreRecord:
    """A single row (page) in a store database."""

    id: str
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass
class QueryPage:
    """One page of query results plus the cursor for the next page."""

    records: list[StoreRecord]
    next_cursor: Optional[str] = None


class DocumentStore(Protocol):
    """Protocol for the external document database."""

    def query(
        self,
        database_id: str,
        filter: Optional[Filter] = None,
        sorts: Optional[list[SortSpec]] = None,
        cursor: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> QueryPage:
        """Return one page of rows matching ``filter`` in ``sorts`` order."""
        ...

    def retrieve(self, record_id: str) -> StoreRecord:
        """Return a single row with all of its properties."""
        ...

    def create(self, database_id: str, properties: dict[str, Any]) -> StoreRecord:
        """Create a row in ``database_id``; the result carries the assigned id."""
        ...

    def update(self, record_id: str, properties: dict[str, Any]) -> StoreRecord:
        """Overwrite the given properties of an existing row."""
        ...

    def retrieve_database(self, database_id: str) -> dict[str, Any]:
        """Return the database schema as a mapping of field name to definition."""
        ...

    def update_database(self, database_id: str, properties: dict[str, Any]) -> None:
        """Add or change field definitions on a database."""
        ...


def query_all(
    store: DocumentStore,
    database_id: str,
    filter: Optional[Filter] = None,
    sorts: Optional[list[SortSpec]] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    limit: Optional[int] = None,
) -> list[StoreRecord]:
    """Drain a cursor-paginated query into a list.

    One round-trip per page; every page is collected before returning.
    When ``limit`` is given, paging stops once that many rows are held.
    """
    records: list[StoreRecord] = []
    cursor: Optional[str] = None
    while True:
        size = page_size if limit is None else max(1, min(page_size, limit - len(records)))
        page = store.query(
            database_id, filter=filter, sorts=sorts, cursor=cursor, page_size=size
        )
        records.extend(page.records)
        cursor = page.next_cursor
        if not cursor:
            break
        if limit is not None and len(records) >= limit:
            break
    if limit is not None:
        return records[:limit]
    return records
