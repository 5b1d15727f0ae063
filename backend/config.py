"""Application configuration using pydantic-settings."""

from typing import Any

from pydantic import field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from services.credential_manager import CREDENTIAL_KEYS, get_credential

AGGREGATION_MODES = ("asset_type", "payment_method", "total")


class ConfigurationError(Exception):
    """Required identifiers or credentials are missing."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required settings: {', '.join(missing)}")


class KeychainSettingsSource(PydanticBaseSettingsSource):
    """Load credential fields from the OS keychain via ``keyring``.

    Only fields whose uppercase name appears in
    :data:`~services.credential_manager.CREDENTIAL_KEYS` are looked up.
    All other fields return ``None`` so the next source in the chain
    handles them.
    """

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        env_name = field_name.upper()
        if env_name not in CREDENTIAL_KEYS:
            return None, field_name, False
        value = get_credential(env_name)
        return value, field_name, False

    def __call__(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        for field_name, field_info in self.settings_cls.model_fields.items():
            value, key, is_complex = self.get_field_value(field_info, field_name)
            if value is not None:
                d[key] = value
        return d


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            KeychainSettingsSource(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    # Document store
    NOTION_TOKEN: str = ""
    NOTION_HOLDINGS_DB_ID: str = ""
    NOTION_SNAPSHOTS_DB_ID: str = ""
    NOTION_TRANSACTIONS_DB_ID: str = ""
    NOTION_ASSET_LOG_DB_ID: str = ""

    # Shared secrets (an empty value disables the check)
    WRITE_SECRET: str = ""
    CRON_SECRET: str = ""
    WEBHOOK_SECRET: str = ""

    # Price and FX providers
    BASE_CURRENCY: str = "USD"
    COINGECKO_API_KEY: str = ""
    FX_API_URL: str = "https://api.exchangerate.host"
    FX_ACCESS_KEY: str = ""
    FX_CACHE_TTL_SECONDS: int = 1800
    PROVIDER_TIMEOUT_SECONDS: float = 10.0

    # Holdings field names
    PROP_NAME: str = "Name"
    PROP_CATEGORY: str = "Category"
    PROP_SYMBOL: str = "Symbol"
    PROP_QUANTITY: str = "Quantity"
    PROP_PRICE_SOURCE: str = "Price Source"
    PROP_MANUAL_PRICE: str = "Manual Price"
    PROP_CURRENCY: str = "Currency"
    PROP_PRICE_ID: str = "Price ID"

    # Snapshot field names
    SNAPSHOT_PROP_DATE: str = "Date"
    SNAPSHOT_PROP_TOTAL: str = "Total USD"
    SNAPSHOT_PROP_CHANGE: str = "Change USD"
    SNAPSHOT_PROP_CHANGE_PCT: str = "Change %"

    # Transaction field names
    TR_PROP_TITLE: str = "Name"
    TR_PROP_DATE: str = "Date"
    TR_PROP_AMOUNT: str = "Amount"
    TR_PROP_AMOUNT_CONFIRMED: str = "Amount Confirmed"
    TR_PROP_VERIFIED: str = "Verified"
    TR_PROP_DUE_DATE: str = "Due Date"
    TR_PROP_TRANSACTION_TYPE: str = "Transaction Type"
    TR_PROP_PAYMENT_METHOD: str = "Payment Method"
    TR_PROP_ASSET_TYPE: str = "Asset Type"
    TR_PROP_EXTERNAL_ID: str = "External ID"

    # Asset log field names
    ALOG_PROP_DATE: str = "Date"
    ALOG_PROP_GROUP: str = "Asset Type"
    ALOG_PROP_NUMBER: str = "Number"
    ALOG_PROP_BALANCE: str = "Balance"

    # Valuation and ledger behaviour
    AGGREGATE_BY: str = "asset_type"
    RECOMPUTE_FOCUS_DAYS: int = 30
    RECOMPUTE_DEFAULT_DAYS: int = 180
    RECOMPUTE_LEASE_WAIT_SECONDS: float = 120.0
    SNAPSHOT_REPLACE_SAME_DAY: bool = False
    VALUATION_ISOLATE_FX_FAILURES: bool = False

    @field_validator("BASE_CURRENCY", mode="before")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        """Currency codes are compared upper-case everywhere."""
        v = (v or "USD").strip()
        return v.upper() if v else "USD"

    @field_validator("AGGREGATE_BY", mode="before")
    @classmethod
    def validate_aggregate_by(cls, v: str) -> str:
        """Validate and normalize AGGREGATE_BY to one of the grouping modes."""
        normalized = (v or "asset_type").strip().lower()
        if normalized not in AGGREGATION_MODES:
            raise ValueError(
                f"AGGREGATE_BY must be one of {AGGREGATION_MODES}, got {v!r}"
            )
        return normalized

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize LOG_LEVEL to an uppercase Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got {v!r}")
        return v.upper()

    # App settings
    LOG_LEVEL: str = "INFO"


settings = Settings()


def require_settings(*names: str, source: Settings | None = None) -> None:
    """Fail fast when any of the named settings is empty.

    Raises:
        ConfigurationError: Listing every missing setting, not just the first.
    """
    source = source or settings
    missing = [name for name in names if not getattr(source, name, "")]
    if missing:
        raise ConfigurationError(missing)
