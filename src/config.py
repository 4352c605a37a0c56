from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

class Settings(BaseSettings):
    # App
    APP_NAME: str = "cc-gateway"
    APP_VERSION: str = "1.3.0"
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Gateway
    GATEWAY_API_KEY: str = ""
    CACHE_NAMESPACE: str = "cc-gateway"
    CACHE_MAX_ENTRIES: int = 256
    HTTP_TIMEOUT_SECONDS: float = 30.0
    # None keeps /health/full waiting on every probe
    HEALTH_PROBE_TIMEOUT_SECONDS: float | None = None

    # Google OAuth
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_REFRESH_TOKEN: str = ""
    GOOGLE_TOKEN_URL: str = "https://oauth2.googleapis.com/token"

    # Google Ads
    GOOGLE_ADS_DEVELOPER_TOKEN: str = ""
    GOOGLE_ADS_CUSTOMER_ID: str = ""

    # Upstream secrets
    RENDER_API_KEY: str = ""
    SENTRY_AUTH_TOKEN: str = ""
    NEON_API_KEY: str = ""
    NEON_ORG_ID: str = ""
    MERCURY_API_TOKEN: str = ""
    NETLIFY_AUTH_TOKEN: str = ""
    META_ACCESS_TOKEN: str = ""
    BROWSERLESS_TOKEN: str = ""
    BROWSERLESS_URL: str = "https://chrome.browserless.io"
    UNIPILE_API_KEY: str = ""
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_SERVICE_KEY: str = ""
    MEM0_API_KEY: str = ""
    MEM0_USER_ID: str = "chi"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

@lru_cache()
def get_settings() -> Settings:
    return Settings()
