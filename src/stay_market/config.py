from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Load .env into os.environ before Settings reads env vars
load_dotenv(_PROJECT_ROOT / ".env")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STAY_MARKET_", extra="ignore")

    api_base_url: str = "http://localhost:5000/api/v1"
    api_token: str = ""
    request_timeout_s: float = 30.0

    # Search relaxation
    default_radius_km: float = 10.0
    fallback_radius_multiplier: float = 5.0
    fallback_radius_floor_km: float = 50.0
    debounce_ms: int = 300
    search_cache_ttl_s: float = 300.0  # 0 disables the cache

    # Reservation windows
    checking_out_window_h: int = 24
    arriving_soon_window_h: int = 48


settings = Settings()
