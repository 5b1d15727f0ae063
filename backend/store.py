"""Document store setup and request-scoped access."""

import logging
from functools import lru_cache

from config import require_settings, settings
from integrations.document_store import DocumentStore
from integrations.notion_client import NotionClient

logger = logging.getLogger(__name__)


@lru_cache
def get_store_client() -> NotionClient:
    """Create the process-wide Notion client.

    Raises:
        ConfigurationError: No store token is configured.
    """
    require_settings("NOTION_TOKEN")
    client = NotionClient(settings.NOTION_TOKEN, timeout=None)
    logger.info("Document store client created")
    return client


def get_store() -> DocumentStore:
    """Dependency that provides the document store.

    Tests replace this with an in-memory store via
    ``app.dependency_overrides``.
    """
    return get_store_client()
