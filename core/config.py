"""Service configuration.

Settings are read from environment variables. A ``.env`` file at the
repository root is loaded first when present.

Variables:
- ORDER_DB_PATH: SQLite database file (default: order_integration.db)
- API_KEY / REQUIRE_API_KEY: shared key expected in X-API-KEY
- ERP_CONNECTOR: "simulator" or "http"
- ERP_BASE_URL, ERP_TIMEOUT_SECONDS: transport settings
- ERP_API_KEY: key sent to the ERP by the http connector (never API_KEY)
- ERP_SIMULATION_MODE, ERP_FAILURE_RATE, ERP_MIN_LATENCY_MS,
  ERP_MAX_LATENCY_MS, ERP_FORCE_FAIL, ERP_FORCE_SUCCESS: simulator knobs
- LOG_LEVEL, LOG_JSON, DEBUG, PORT, SEED_DATA
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_DB_PATH = PROJECT_ROOT / "order_integration.db"


def load_env_file(env_path: Path = PROJECT_ROOT / ".env") -> None:
    """Load a .env file if it exists (existing variables win)."""
    if env_path.exists():
        load_dotenv(env_path)


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _get_list(name: str) -> List[str]:
    value = os.getenv(name, "")
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass
class Settings:
    """Runtime settings for the API and its collaborators."""
    db_path: Path = DEFAULT_DB_PATH
    api_key: Optional[str] = None
    require_api_key: bool = True

    # ERP transport
    erp_connector: str = "simulator"
    erp_base_url: Optional[str] = None
    erp_api_key: Optional[str] = None
    erp_timeout_seconds: float = 30.0

    # ERP simulator
    erp_simulation_mode: str = "Random"
    erp_failure_rate: float = 0.1
    erp_min_latency_ms: int = 100
    erp_max_latency_ms: int = 500
    erp_force_fail: List[str] = field(default_factory=list)
    erp_force_success: List[str] = field(default_factory=list)

    # Runtime
    log_level: str = "INFO"
    log_json: bool = False
    debug: bool = False
    port: int = 8080
    seed_data: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the environment (after loading .env).

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        load_env_file()
        return cls(
            db_path=Path(os.getenv("ORDER_DB_PATH", str(DEFAULT_DB_PATH))),
            api_key=os.getenv("API_KEY") or None,
            require_api_key=_get_bool("REQUIRE_API_KEY", True),
            erp_connector=os.getenv("ERP_CONNECTOR", "simulator"),
            erp_base_url=os.getenv("ERP_BASE_URL") or None,
            erp_api_key=os.getenv("ERP_API_KEY") or None,
            erp_timeout_seconds=float(os.getenv("ERP_TIMEOUT_SECONDS", "30")),
            erp_simulation_mode=os.getenv("ERP_SIMULATION_MODE", "Random"),
            erp_failure_rate=float(os.getenv("ERP_FAILURE_RATE", "0.1")),
            erp_min_latency_ms=int(os.getenv("ERP_MIN_LATENCY_MS", "100")),
            erp_max_latency_ms=int(os.getenv("ERP_MAX_LATENCY_MS", "500")),
            erp_force_fail=_get_list("ERP_FORCE_FAIL"),
            erp_force_success=_get_list("ERP_FORCE_SUCCESS"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_json=_get_bool("LOG_JSON", False),
            debug=_get_bool("DEBUG", False),
            port=int(os.getenv("PORT", "8080")),
            seed_data=_get_bool("SEED_DATA", False),
        )
