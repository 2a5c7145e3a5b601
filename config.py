import os
from functools import lru_cache
from pathlib import Path


_TRUTHY = {"1", "true", "yes", "on"}


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        strict_amounts: bool,
        default_goal_color: str,
        default_goal_icon: str,
        budget_rollover: bool,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.strict_amounts = strict_amounts
        self.default_goal_color = default_goal_color
        self.default_goal_icon = default_goal_icon
        self.budget_rollover = budget_rollover


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


def _data_dir() -> Path:
    root = Path(os.getenv("LEDGER_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    database_url = os.getenv("LEDGER_DATABASE_URL")
    if not database_url:
        database_url = f"sqlite:///{_data_dir() / 'ledger.db'}"
    return Settings(
        database_url=database_url,
        timezone=os.getenv("LEDGER_TIMEZONE", "America/Sao_Paulo"),
        strict_amounts=_env_flag("LEDGER_STRICT_AMOUNTS", "false"),
        default_goal_color=os.getenv("LEDGER_DEFAULT_GOAL_COLOR", "#6366f1"),
        default_goal_icon=os.getenv("LEDGER_DEFAULT_GOAL_ICON", "savings"),
        budget_rollover=_env_flag("LEDGER_BUDGET_ROLLOVER", "true"),
    )
