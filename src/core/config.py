from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
    # Credentials — an empty key disables the provider that needs it
    finnhub_api_key: str = ""
    openfigi_api_key: str = ""
    coingecko_api_key: str = ""
    # Which concrete provider each factory hands out
    index_fund_price_provider: str = "finnhub"
    crypto_price_provider: str = "coingecko"
    # Outbound request discipline
    http_timeout_seconds: float = 10.0
    http_log_body_limit: int = 2000
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 1.0
    finnhub_min_interval_seconds: float = 1.0
    yahoo_min_interval_seconds: float = 1.0
    coingecko_min_interval_seconds: float = 2.0
    # In-memory caches
    isin_cache_max_entries: int = 1000
    isin_cache_ttl_seconds: float = 24 * 3600
    price_cache_max_entries: int = 500
    price_cache_ttl_seconds: float = 60
    log_level: str = "INFO"
    log_json: bool = False

settings = Settings()
