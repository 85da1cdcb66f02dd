"""Runtime configuration read from the environment."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_POOL_SIZE = 5
DEFAULT_POOL_TIMEOUT = 30.0
DEFAULT_LOG_LEVEL = "WARNING"
LOOKUP_STRATEGIES = ("sequential", "union")


def default_database_path() -> Path:
    """Return ~/.coopledger/ledger.db, creating the directory if needed."""
    db_dir = Path.home() / ".coopledger"
    db_dir.mkdir(exist_ok=True)
    return db_dir / "ledger.db"


@dataclass(frozen=True)
class Settings:
    """Resolved coopledger settings."""

    database_url: str
    lookup_strategy: str = "union"
    pool_size: int = DEFAULT_POOL_SIZE
    pool_timeout: float = DEFAULT_POOL_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, database_path: Optional[str] = None
    ) -> "Settings":
        """Build settings from environment variables.

        COOPLEDGER_DATABASE_URL wins over COOPLEDGER_DB_PATH; an explicit
        database_path wins over both.

        Raises:
            ValueError: If a variable holds an unusable value
        """
        env = os.environ if environ is None else environ

        if database_path is not None:
            database_url = f"sqlite:///{database_path}"
        elif env.get("COOPLEDGER_DATABASE_URL"):
            database_url = env["COOPLEDGER_DATABASE_URL"]
        elif env.get("COOPLEDGER_DB_PATH"):
            database_url = f"sqlite:///{env['COOPLEDGER_DB_PATH']}"
        else:
            database_url = f"sqlite:///{default_database_path()}"

        strategy = env.get("COOPLEDGER_LOOKUP_STRATEGY", "union").strip().lower()
        if strategy not in LOOKUP_STRATEGIES:
            raise ValueError(
                f"Unknown lookup strategy '{strategy}'. Supported: {', '.join(LOOKUP_STRATEGIES)}"
            )

        try:
            pool_size = int(env.get("COOPLEDGER_POOL_SIZE", DEFAULT_POOL_SIZE))
            pool_timeout = float(env.get("COOPLEDGER_POOL_TIMEOUT", DEFAULT_POOL_TIMEOUT))
        except ValueError as e:
            raise ValueError(f"Invalid pool setting: {e}") from e
        if pool_size < 1 or pool_timeout <= 0:
            raise ValueError("Pool size and timeout must be positive")

        log_level = env.get("COOPLEDGER_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()

        return cls(
            database_url=database_url,
            lookup_strategy=strategy,
            pool_size=pool_size,
            pool_timeout=pool_timeout,
            log_level=log_level,
        )
