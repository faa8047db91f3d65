import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def load_env() -> None:
    """Load .env from the working directory if present.
    Variables already set in the environment win.
    """
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None


def _env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{key} must be a boolean, got {raw!r}")


@dataclass
class Settings:
    db_path: Path = Path("data/clusters.db")
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    log_to_file: bool = True
    page_size: int = 1024

    @classmethod
    def from_env(cls) -> "Settings":
        """Read CLUSTERSPECS_* variables, after loading .env."""
        load_env()
        page_size = _env_int("CLUSTERSPECS_PAGE_SIZE", cls.page_size)
        if page_size <= 0:
            raise ValueError(f"CLUSTERSPECS_PAGE_SIZE must be positive, got {page_size}")
        return cls(
            db_path=Path(os.getenv("CLUSTERSPECS_DB_PATH") or cls.db_path),
            log_level=(os.getenv("CLUSTERSPECS_LOG_LEVEL") or cls.log_level).upper(),
            log_dir=Path(os.getenv("CLUSTERSPECS_LOG_DIR") or cls.log_dir),
            log_to_file=_env_bool("CLUSTERSPECS_LOG_TO_FILE", cls.log_to_file),
            page_size=page_size,
        )


def get_settings() -> Settings:
    return Settings.from_env()
