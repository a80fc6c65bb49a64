import os
from dataclasses import dataclass
from typing import Literal

from finance_tracker.core import settings
from finance_tracker.logger import get_logger

CategoryMatchMode = Literal["exact", "fuzzy"]

logger = get_logger(__name__)

_MATCH_MODES: tuple[str, ...] = ("exact", "fuzzy")


@dataclass(frozen=True)
class AppConfig:
    """Everything the services need, resolved once and passed to constructors."""

    data_dir: str = "."
    database_url: str = "sqlite:///finance.db"
    max_upload_bytes: int = settings.DEFAULT_MAX_UPLOAD_BYTES
    archive_dir: str | None = None
    archive_container_url: str | None = None
    archive_sas_token: str | None = None
    category_match_mode: CategoryMatchMode = "exact"
    category_match_threshold: float = settings.DEFAULT_CATEGORY_MATCH_THRESHOLD


def default_database_url(data_dir: str) -> str:
    return f"sqlite:///{os.path.join(data_dir, 'finance.db')}"


def _read_match_mode() -> CategoryMatchMode:
    raw = (settings.get_env_str("CATEGORY_MATCH_MODE", "exact") or "exact").lower()
    if raw not in _MATCH_MODES:
        logger.warning(
            "[ENV] Invalid CATEGORY_MATCH_MODE='%s', expected one of %s. Using 'exact'.",
            raw,
            ", ".join(_MATCH_MODES),
        )
        return "exact"
    return "fuzzy" if raw == "fuzzy" else "exact"


def load_app_config() -> AppConfig:
    """Build an :class:`AppConfig` from the process environment.

    :func:`settings.load_environment` should have run first so that ``.env`` and
    ``config.yaml`` values are visible.
    """
    data_dir = settings.get_env_str("DATA_DIR", ".") or "."
    log_dir = settings.get_env_str("LOG_DIR")
    archive_dir = settings.get_env_str("ARCHIVE_DIR")
    settings.ensure_dirs(data_dir, log_dir, archive_dir)

    container_url = settings.get_env_str("ARCHIVE_CONTAINER_URL")
    if container_url:
        container_url = container_url.rstrip("/")

    return AppConfig(
        data_dir=data_dir,
        database_url=settings.get_env_str("DATABASE_URL") or default_database_url(data_dir),
        max_upload_bytes=settings.get_env_int(
            "MAX_UPLOAD_BYTES",
            settings.DEFAULT_MAX_UPLOAD_BYTES,
            min_value=1,
        ),
        archive_dir=archive_dir,
        archive_container_url=container_url,
        archive_sas_token=settings.get_env_str("ARCHIVE_SAS_TOKEN"),
        category_match_mode=_read_match_mode(),
        category_match_threshold=settings.get_env_float(
            "CATEGORY_MATCH_THRESHOLD",
            settings.DEFAULT_CATEGORY_MATCH_THRESHOLD,
            min_value=0.0,
            max_value=100.0,
        ),
    )
