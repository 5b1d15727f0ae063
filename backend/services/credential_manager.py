"""Keyring-backed credential lookup for integration secrets.

Reads the Notion token, shared secrets and provider API keys from the OS
keychain (or any other backend supported by keyring) under the
``folio-ledger`` service name. The ``keyring`` import is lazy so the rest
of the app works even if keyring is not installed.
"""

import logging

logger = logging.getLogger(__name__)

SERVICE_NAME = "folio-ledger"

CREDENTIAL_KEYS: frozenset[str] = frozenset(
    {
        "NOTION_TOKEN",
        "WRITE_SECRET",
        "CRON_SECRET",
        "WEBHOOK_SECRET",
        "COINGECKO_API_KEY",
        "FX_ACCESS_KEY",
    }
)


def get_credential(key: str) -> str | None:
    """Retrieve a credential from the keychain.

    Args:
        key: The credential name (e.g. ``"NOTION_TOKEN"``).

    Returns:
        The credential value, or ``None`` if not found or keyring
        is unavailable.
    """
    try:
        import keyring
    except ImportError:
        return None

    try:
        return keyring.get_password(SERVICE_NAME, key)
    except Exception:
        logger.debug("keyring lookup failed for %s", key, exc_info=True)
        return None
