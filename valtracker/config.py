from dataclasses import dataclass
import os

from dotenv import load_dotenv


REGIONS = ("na", "eu", "ap", "kr", "latam", "br")
MAX_PAGE_SIZE = 10


@dataclass(frozen=True, slots=True)
class Settings:
    database_url: str
    henrik_api_key: str | None
    henrik_base_url: str
    request_timeout: float
    max_retries: int
    page_size: int
    match_mode: str
    region_candidates: tuple[str, ...]
    log_level: str


def load_settings() -> Settings:
    load_dotenv()

    database_url = os.getenv("DATABASE_URL", "").strip() or "sqlite:///valtracker.db"

    api_key = os.getenv("HENRIK_API_KEY", "").strip() or None
    base_url = os.getenv("HENRIK_BASE_URL", "").strip().rstrip("/") or "https://api.henrikdev.xyz"

    try:
        request_timeout = float(os.getenv("HENRIK_TIMEOUT", "10"))
    except ValueError:
        raise RuntimeError("HENRIK_TIMEOUT must be a number of seconds.") from None
    if request_timeout <= 0:
        raise RuntimeError("HENRIK_TIMEOUT must be positive.")

    max_retries = int(os.getenv("HENRIK_MAX_RETRIES", "2"))
    if max_retries < 0:
        raise RuntimeError("HENRIK_MAX_RETRIES cannot be negative.")

    page_size = int(os.getenv("SYNC_PAGE_SIZE", str(MAX_PAGE_SIZE)))
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise RuntimeError(f"SYNC_PAGE_SIZE must be between 1 and {MAX_PAGE_SIZE}.")

    match_mode = os.getenv("SYNC_MODE", "competitive").strip().lower() or "competitive"

    raw_candidates = os.getenv("REGION_CANDIDATES", "").strip()
    if raw_candidates:
        candidates = tuple(c.strip().lower() for c in raw_candidates.split(",") if c.strip())
    else:
        candidates = REGIONS
    unknown = [c for c in candidates if c not in REGIONS]
    if unknown or not candidates:
        raise RuntimeError(
            "REGION_CANDIDATES must be a comma separated subset of " + ",".join(REGIONS) + "."
        )

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

    return Settings(
        database_url=database_url,
        henrik_api_key=api_key,
        henrik_base_url=base_url,
        request_timeout=request_timeout,
        max_retries=max_retries,
        page_size=page_size,
        match_mode=match_mode,
        region_candidates=candidates,
        log_level=log_level,
    )
