from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Ledger (CosmWasm contract on Cosmos Hub)
    lcd_url: str = "https://api.cosmoshub.strange.love"
    contract_address: str = ""
    wallet_address: str = ""

    # Signing agent (wallet / keyring relay that owns the private key)
    signer_url: str = "http://localhost:8787"
    signer_api_key: str = ""
    gas_limit: str = "500000"

    denom: str = "uatom"
    denomination_factor: int = 1_000_000

    # Media pinning gateway
    media_gateway_url: str = "https://ipfs-worker.atommarket.workers.dev"
    media_retrieval_base_url: str = "https://gateway.pinata.cloud/ipfs"

    listing_query_limit: int = 50
    search_debounce_seconds: float = 0.3
    http_timeout_seconds: float = 30.0

    # Optional event bus; events are discarded when unset
    rabbitmq_url: str | None = None

    log_level: LogLevel = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


settings = Settings()
