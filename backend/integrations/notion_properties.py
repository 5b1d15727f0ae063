"""Typed access to Notion-style property payloads.

Reading: :class:`PropertyReader` wraps a :class:`StoreRecord` and exposes one
accessor per property type. Each returns ``None`` when the field is absent or
holds a different type; the ``require_*`` variants raise
:class:`DataQualityGap` instead.

Writing: the ``*_value`` builders produce the payload shape the store
accepts for create/update calls.
"""

import datetime
from decimal import Decimal
from typing import Any, Optional

from integrations.document_store import StoreRecord
from integrations.exceptions import DataQualityGap
from integrations.parsing_utils import parse_decimal, parse_iso_date


def _plain_text(fragments: Any) -> Optional[str]:
    if not isinstance(fragments, list):
        return None
    parts: list[str] = []
    for fragment in fragments:
        if not isinstance(fragment, dict):
            continue
        text = fragment.get("plain_text")
        if text is None:
            text = (fragment.get("text") or {}).get("content")
        if isinstance(text, str):
            parts.append(text)
    joined = "".join(parts).strip()
    return joined or None


class PropertyReader:
    """Option-returning accessors over one record's properties."""

    def __init__(self, record: StoreRecord):
        self._record = record

    @property
    def record_id(self) -> str:
        return self._record.id

    def _prop(self, name: str) -> dict:
        prop = self._record.properties.get(name)
        return prop if isinstance(prop, dict) else {}

    def title(self, name: str) -> Optional[str]:
        return _plain_text(self._prop(name).get("title"))

    def rich_text(self, name: str) -> Optional[str]:
        return _plain_text(self._prop(name).get("rich_text"))

    def select(self, name: str) -> Optional[str]:
        option = self._prop(name).get("select")
        if not isinstance(option, dict):
            return None
        value = option.get("name")
        if not isinstance(value, str) or not value.strip():
            return None
        return value.strip()

    def number(self, name: str) -> Optional[Decimal]:
        raw = self._prop(name).get("number")
        if isinstance(raw, str):
            return None
        return parse_decimal(raw)

    def date(self, name: str) -> Optional[datetime.date]:
        value = self._prop(name).get("date")
        if not isinstance(value, dict):
            return None
        return parse_iso_date(value.get("start"))

    def checkbox(self, name: str) -> Optional[bool]:
        value = self._prop(name).get("checkbox")
        return value if isinstance(value, bool) else None

    def require_title(self, name: str) -> str:
        value = self.title(name)
        if value is None:
            raise DataQualityGap(self.record_id, name, "title")
        return value

    def require_select(self, name: str) -> str:
        value = self.select(name)
        if value is None:
            raise DataQualityGap(self.record_id, name, "select")
        return value

    def require_number(self, name: str) -> Decimal:
        value = self.number(name)
        if value is None:
            raise DataQualityGap(self.record_id, name, "number")
        return value

    def require_date(self, name: str) -> datetime.date:
        value = self.date(name)
        if value is None:
            raise DataQualityGap(self.record_id, name, "date")
        return value


def title_value(text: str) -> dict:
    return {"title": [{"type": "text", "text": {"content": text[:2000]}}]}


def rich_text_value(text: str) -> dict:
    return {"rich_text": [{"type": "text", "text": {"content": text[:2000]}}]}


def select_value(name: str) -> dict:
    return {"select": {"name": name}}


def number_value(value: Decimal | float | int) -> dict:
    # The store speaks JSON numbers.
    return {"number": float(value)}


def date_value(value: datetime.date) -> dict:
    return {"date": {"start": value.isoformat()}}


def checkbox_value(value: bool) -> dict:
    return {"checkbox": bool(value)}


def find_title_property(schema: dict[str, Any]) -> Optional[str]:
    """Return the name of the database's title field, if it has one."""
    for name, definition in schema.items():
        if isinstance(definition, dict) and definition.get("type") == "title":
            return name
    return None


def select_options(schema: dict[str, Any], name: str) -> list[str]:
    """Return the option names configured on a select field."""
    definition = schema.get(name)
    if not isinstance(definition, dict):
        return []
    options = (definition.get("select") or {}).get("options") or []
    return [o["name"] for o in options if isinstance(o, dict) and o.get("name")]
