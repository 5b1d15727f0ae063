"""Holdings service - reads the holdings table for valuation."""

import logging
from typing import Optional

from config import Settings, settings
from integrations.document_store import DocumentStore, SortSpec, StoreRecord, query_all
from integrations.exceptions import DataQualityGap
from integrations.notion_properties import PropertyReader
from models import Holding, PriceSource
from services.fx_service import normalize_currency

logger = logging.getLogger(__name__)


def parse_holding(record: StoreRecord, config: Settings) -> Holding:
    """Build a Holding from a holdings row.

    The symbol falls back to the name, a blank price source means Yahoo,
    and a blank currency means USD (``currency_set`` records whether it
    was given, since manual prices treat a blank currency as base).

    Raises:
        DataQualityGap: The row has no name, or a missing/non-positive
            quantity.
    """
    reader = PropertyReader(record)
    name = reader.require_title(config.PROP_NAME)
    quantity = reader.require_number(config.PROP_QUANTITY)
    if quantity <= 0:
        raise DataQualityGap(record.id, config.PROP_QUANTITY, "positive number")

    raw_currency = reader.select(config.PROP_CURRENCY)
    return Holding(
        name=name,
        symbol=reader.rich_text(config.PROP_SYMBOL) or name,
        quantity=quantity,
        price_source=PriceSource.parse(reader.select(config.PROP_PRICE_SOURCE)),
        category=reader.select(config.PROP_CATEGORY) or "",
        manual_price=reader.number(config.PROP_MANUAL_PRICE),
        currency=normalize_currency(raw_currency),
        currency_set=raw_currency is not None,
        price_id=reader.rich_text(config.PROP_PRICE_ID),
    )


class HoldingsService:
    """Fetches every valid holding, sorted by category then name."""

    def __init__(self, store: DocumentStore, config: Optional[Settings] = None):
        self._store = store
        self._config = config or settings

    def fetch_holdings(self) -> list[Holding]:
        cfg = self._config
        records = query_all(
            self._store,
            cfg.NOTION_HOLDINGS_DB_ID,
            sorts=[SortSpec(cfg.PROP_CATEGORY), SortSpec(cfg.PROP_NAME)],
        )
        holdings: list[Holding] = []
        for record in records:
            try:
                holdings.append(parse_holding(record, cfg))
            except DataQualityGap as gap:
                logger.debug("Skipping holding: %s", gap)
        return holdings
