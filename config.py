import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        log_level: str,
        service_name: str,
        developers: list[tuple[str, str]],
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.log_level = log_level
        self.service_name = service_name
        self.developers = developers


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("COSTS_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def _parse_developers(raw: str) -> list[tuple[str, str]]:
    developers: list[tuple[str, str]] = []
    for chunk in raw.split(","):
        name = chunk.strip()
        if not name:
            continue
        first, _, last = name.partition(" ")
        developers.append((first, last.strip()))
    return developers


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "costs.db"
    database_url = os.getenv("COSTS_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("COSTS_TIMEZONE", "UTC")
    log_level = os.getenv("COSTS_LOG_LEVEL", "INFO").upper()
    service_name = os.getenv("COSTS_SERVICE_NAME", "costs-service")
    developers = _parse_developers(
        os.getenv("COSTS_DEVELOPERS", "Daniel Ziv,Taisiya Angel")
    )
    return Settings(
        database_url=database_url,
        timezone=timezone,
        log_level=log_level,
        service_name=service_name,
        developers=developers,
    )
