"""External API integrations.

This package contains:
- Document store protocol and query helpers, with the Notion client
- Price providers: Yahoo Finance (equities) and CoinGecko (crypto)
- Exchange-rate client for currency conversion
"""

from integrations.document_store import DocumentStore, StoreRecord, query_all
from integrations.market_data_protocol import FxRateProvider, PriceProvider

__all__ = [
    "DocumentStore",
    "FxRateProvider",
    "PriceProvider",
    "StoreRecord",
    "query_all",
]
