from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import List, Optional
from pathlib import Path
from dotenv import load_dotenv

# --------------------------
# .env loading
# --------------------------
BASE_DIR = Path(__file__).resolve().parent.parent.parent
load_dotenv(dotenv_path=BASE_DIR / ".env", override=False)

SUPPORTED_PROVIDERS = ("nrel", "ocm", "evchargers", "mock", "generative")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file_encoding="utf-8", extra="ignore")

    # --------------------------
    # Project
    # --------------------------
    PROJECT_NAME: str = "Voltsage EV Charger Finder"
    API_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"   # development / docker / production
    LOG_LEVEL: str = "INFO"
    # Comma separated list of CORS origins; empty disables CORS middleware
    ALLOWED_ORIGINS: str = ""

    # --------------------------
    # Station data provider
    # --------------------------
    # One of: nrel, ocm, evchargers, mock, generative
    DATA_PROVIDER: str = "nrel"

    NREL_API_BASE_URL: str = "https://developer.nrel.gov/api/alt-fuel-stations/v1.json"
    # NREL accepts the public DEMO_KEY with a low rate limit
    NREL_API_KEY: str = "DEMO_KEY"

    OCM_API_BASE_URL: str = "https://api.openchargemap.io/v3/poi/"
    OCM_API_KEY: Optional[str] = None

    EV_CHARGER_API_BASE_URL: str = "https://api.api-ninjas.com/v1/evchargers"
    EV_CHARGER_API_KEY: Optional[str] = None
    EV_CHARGER_RADIUS: int = 50

    # Radius used by NREL and OCM, in miles
    SEARCH_RADIUS_MILES: float = 5.0
    NREL_RESULT_LIMIT: int = 200
    OCM_MAX_RESULTS: int = 100
    PROVIDER_TIMEOUT_SECONDS: float = 10.0

    # Generative source (OpenAI-compatible chat completions). Non-deterministic.
    LLM_API_BASE_URL: str = "https://api.openai.com/v1"
    LLM_API_KEY: Optional[str] = None
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_STATION_COUNT: int = 5

    # --------------------------
    # Search
    # --------------------------
    MIN_QUERY_LENGTH: int = 3
    MAX_RESULTS: int = 200

    # --------------------------
    # Geocoding
    # --------------------------
    GEOCODER_BASE_URL: str = "https://nominatim.openstreetmap.org/search"
    GEOCODER_API_KEY: Optional[str] = None
    GEOCODER_API_KEY_HEADER_NAME: str = "X-Api-Key"
    GEOCODER_USER_AGENT: str = "VoltsageEVChargerFinder/1.0"
    GEOCODER_TIMEOUT_SECONDS: float = 10.0

    # --------------------------
    # Response cache (in-process LRU, optional shared Redis tier)
    # --------------------------
    CACHE_MAX_ENTRIES: int = 128
    # Also share provider results through Redis when it is connected.
    CACHE_REDIS_ENABLED: bool = False
    # Cache TTL in seconds for provider search results.
    CACHE_EXPIRE_SECONDS: int = 300
    # Number of decimal places to round coordinates for cache keys.
    CACHE_COORD_ROUND_DECIMALS: int = 4

    # --------------------------
    # Favorites / ratings store
    # --------------------------
    # redis or memory
    FAVORITES_BACKEND: str = "memory"
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: Optional[str] = None

    @field_validator("DATA_PROVIDER", "FAVORITES_BACKEND", mode="before")
    def lower_case(cls, v):
        """Provider and backend names are matched case-insensitively."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def allowed_origins(self) -> List[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]


# --------------------------
# Settings instance
# --------------------------
settings = Settings()
