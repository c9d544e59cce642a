"""
Pipeline settings, read from the environment.

A .env file at the repository root is loaded first (existing environment
variables win). The Snowflake values mirror what profiles.yml reads via
env_var(), so a missing variable can be reported before dbt fails on it.

Environment variables:
    SNOWFLAKE_ACCOUNT, SNOWFLAKE_USER, SNOWFLAKE_PASSWORD (required)
    SNOWFLAKE_WAREHOUSE, SNOWFLAKE_DATABASE (required)
    SNOWFLAKE_ROLE: default TRANSFORMER
    SNOWFLAKE_SCHEMA: default DBT_TPCH
    DBT_TARGET: profiles.yml output, default dev
    DBT_EXECUTABLE: dbt binary, default: .venv/bin/dbt if present, else dbt
    PIPELINE_SCHEDULE_CRON: default "0 0 * * *" (daily at midnight)
    PIPELINE_TIMEZONE: default UTC
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from .exceptions import ConfigurationError

PACKAGE_DIR = Path(__file__).parent
REPO_ROOT = PACKAGE_DIR.parent

env_file = REPO_ROOT / ".env"
if env_file.exists():
    load_dotenv(env_file, override=False)


REQUIRED_SNOWFLAKE_VARS = {
    "account": "SNOWFLAKE_ACCOUNT",
    "user": "SNOWFLAKE_USER",
    "password": "SNOWFLAKE_PASSWORD",
    "warehouse": "SNOWFLAKE_WAREHOUSE",
    "database": "SNOWFLAKE_DATABASE",
}


def _default_dbt_executable() -> str:
    venv_dbt = REPO_ROOT / ".venv" / "bin" / "dbt"
    return str(venv_dbt) if venv_dbt.exists() else "dbt"


@dataclass(frozen=True)
class SnowflakeSettings:
    account: str = ""
    user: str = ""
    password: str = field(default="", repr=False)
    warehouse: str = ""
    database: str = ""
    role: str = "TRANSFORMER"
    schema: str = "DBT_TPCH"

    def missing(self) -> list[str]:
        """Environment variable names of required settings that are empty."""
        return [
            env_name
            for attr, env_name in REQUIRED_SNOWFLAKE_VARS.items()
            if not getattr(self, attr)
        ]


@dataclass(frozen=True)
class PipelineSettings:
    snowflake: SnowflakeSettings
    dbt_target: str = "dev"
    dbt_executable: str = "dbt"
    schedule_cron: str = "0 0 * * *"
    timezone: str = "UTC"


def get_settings(environ: Mapping[str, str] | None = None) -> PipelineSettings:
    """Build settings from the environment (or an explicit mapping, for tests)."""
    env = os.environ if environ is None else environ

    snowflake = SnowflakeSettings(
        account=env.get("SNOWFLAKE_ACCOUNT", ""),
        user=env.get("SNOWFLAKE_USER", ""),
        password=env.get("SNOWFLAKE_PASSWORD", ""),
        warehouse=env.get("SNOWFLAKE_WAREHOUSE", ""),
        database=env.get("SNOWFLAKE_DATABASE", ""),
        role=env.get("SNOWFLAKE_ROLE", "TRANSFORMER"),
        schema=env.get("SNOWFLAKE_SCHEMA", "DBT_TPCH"),
    )

    return PipelineSettings(
        snowflake=snowflake,
        dbt_target=env.get("DBT_TARGET", "dev"),
        dbt_executable=env.get("DBT_EXECUTABLE") or _default_dbt_executable(),
        schedule_cron=env.get("PIPELINE_SCHEDULE_CRON", "0 0 * * *"),
        timezone=env.get("PIPELINE_TIMEZONE", "UTC"),
    )


def require_snowflake_settings(settings: PipelineSettings | None = None) -> SnowflakeSettings:
    """Return the Snowflake settings, raising ConfigurationError if any are missing."""
    settings = settings or get_settings()
    missing = settings.snowflake.missing()
    if missing:
        raise ConfigurationError(missing)
    return settings.snowflake
