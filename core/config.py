"""Service configuration.

Settings are read from environment variables. A `.env` file at the
repository root is loaded first when present (existing variables win).
"""

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from core.observability.logging import get_logger
from reconciliation.models import ThresholdConfig


logger = get_logger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[1]
ENV_PATH = REPO_ROOT / ".env"

DEFAULT_DATA_DIR = REPO_ROOT / "data"
DEFAULT_COMMENTS_DB = REPO_ROOT / "tenancy.db"

PM_TENANTS_FILE = "pm_datatenant.csv"
PM_ASSETS_FILE = "pm_data.csv"
TENANT_MAP_FILE = "tenant_map.json"


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}; using {default}")
        return default


def parse_users(raw: Optional[str]) -> List[Tuple[str, str]]:
    """Parse TENANCY_USERS_JSON ('[{"u": "...", "p": "..."}]').

    Invalid JSON or entries without both fields are ignored.
    """
    if not raw or not raw.strip():
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"TENANCY_USERS_JSON is not valid JSON ({e}); basic auth disabled")
        return []
    if not isinstance(data, list):
        logger.warning("TENANCY_USERS_JSON must be a list; basic auth disabled")
        return []

    users = []
    for item in data:
        if isinstance(item, dict) and item.get("u") and item.get("p"):
            users.append((str(item["u"]), str(item["p"])))
    return users


class Settings(BaseModel):
    """Runtime settings for the API, the CLI and the Odoo connector."""
    model_config = ConfigDict(frozen=True)

    # Odoo
    odoo_url: str = ""
    odoo_db: str = ""
    odoo_user: str = ""
    odoo_password: str = ""

    # Files
    data_dir: Path = DEFAULT_DATA_DIR
    comments_db: Path = DEFAULT_COMMENTS_DB

    # Auth
    users: Tuple[Tuple[str, str], ...] = ()

    # Logging
    log_json: bool = False
    log_level: str = "INFO"

    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)

    @property
    def pm_tenants_path(self) -> Path:
        return self.data_dir / PM_TENANTS_FILE

    @property
    def pm_assets_path(self) -> Path:
        return self.data_dir / PM_ASSETS_FILE

    @property
    def tenant_map_path(self) -> Path:
        return self.data_dir / TENANT_MAP_FILE

    @property
    def auth_enabled(self) -> bool:
        return bool(self.users)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current environment."""
        if ENV_PATH.exists():
            load_dotenv(ENV_PATH)

        defaults = ThresholdConfig()
        thresholds = ThresholdConfig(
            space_highlight=_env_float("TENANCY_SPACE_HIGHLIGHT", defaults.space_highlight),
            rent_highlight=_env_float("TENANCY_RENT_HIGHLIGHT", defaults.rent_highlight),
            walt_highlight=_env_float("TENANCY_WALT_HIGHLIGHT", defaults.walt_highlight),
            space_display=_env_float("TENANCY_SPACE_DISPLAY", defaults.space_display),
            rent_display=_env_float("TENANCY_RENT_DISPLAY", defaults.rent_display),
            walt_display=_env_float("TENANCY_WALT_DISPLAY", defaults.walt_display),
        )

        users = parse_users(os.getenv("TENANCY_USERS_JSON"))
        if not users:
            logger.warning("No TENANCY_USERS_JSON users configured; basic auth disabled")

        return cls(
            odoo_url=_env("ODOO_URL").rstrip("/"),
            odoo_db=_env("ODOO_DB"),
            odoo_user=_env("ODOO_USER"),
            odoo_password=_env("ODOO_API") or _env("ODOO_PWD"),
            data_dir=Path(_env("TENANCY_DATA_DIR") or DEFAULT_DATA_DIR),
            comments_db=Path(_env("TENANCY_COMMENTS_DB") or DEFAULT_COMMENTS_DB),
            users=tuple(users),
            log_json=_env("TENANCY_LOG_JSON") == "1",
            log_level=_env("TENANCY_LOG_LEVEL", "INFO").upper(),
            thresholds=thresholds,
        )


def has_odoo_config(settings: Settings) -> bool:
    """True when every Odoo credential is present."""
    return all([settings.odoo_url, settings.odoo_db, settings.odoo_user, settings.odoo_password])


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings (read once)."""
    return Settings.from_env()
