import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root, regardless of cwd
load_dotenv(Path(__file__).parent.parent / ".env")

# ── Testnet defaults ──────────────────────────────────────────────────────────
ALGOD_URL = "https://testnet-api.algonode.cloud"
ALGOD_TOKEN = ""


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_list(name: str, sep: str = ",") -> tuple:
    raw = os.getenv(name, "")
    return tuple(item.strip() for item in raw.split(sep) if item.strip())


@dataclass(frozen=True)
class Settings:
    """Off-chain settings (API, offchain worker, deploy), read once by `load_settings()`."""

    algod_url: str = ALGOD_URL
    algod_token: str = ALGOD_TOKEN
    poe_app_id: int = 0
    numbers_app_id: int = 0
    sum_service_url: str = ""
    offchain_http_timeout_ms: int = 5000
    offchain_max_retries: int = 2
    # 25-word mnemonics, separated by ";"
    offchain_mnemonics: tuple = field(default_factory=tuple)
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"


def load_settings() -> Settings:
    settings = Settings(
        algod_url=os.getenv("ALGOD_URL", ALGOD_URL).strip().rstrip("/"),
        algod_token=os.getenv("ALGOD_TOKEN", ALGOD_TOKEN).strip(),
        poe_app_id=_env_int("POE_APP_ID", 0),
        numbers_app_id=_env_int("NUMBERS_APP_ID", 0),
        sum_service_url=os.getenv("SUM_SERVICE_URL", "").strip(),
        offchain_http_timeout_ms=_env_int("OFFCHAIN_HTTP_TIMEOUT_MS", 5000),
        offchain_max_retries=_env_int("OFFCHAIN_MAX_RETRIES", 2),
        offchain_mnemonics=_env_list("OFFCHAIN_MNEMONICS", sep=";"),
        api_host=os.getenv("API_HOST", "0.0.0.0"),
        api_port=_env_int("API_PORT", 8000),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
    if settings.poe_app_id < 0 or settings.numbers_app_id < 0:
        raise ValueError("app ids must not be negative")
    if settings.offchain_max_retries < 0:
        raise ValueError("OFFCHAIN_MAX_RETRIES must not be negative")
    return settings
