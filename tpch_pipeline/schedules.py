"""
Daily Job and Schedule

tpch_daily_job runs the five steps in dependency order:
    dbt_packages -> staging -> intermediate -> marts -> dbt_test_results

Retries and run concurrency are left at Dagster defaults.
"""
from dagster import (
    AssetSelection,
    DefaultScheduleStatus,
    ScheduleDefinition,
    define_asset_job,
)

from .resources import settings

PIPELINE_GROUPS = ["dependencies", "staging", "intermediate", "marts", "quality"]

tpch_daily_job = define_asset_job(
    name="tpch_daily_job",
    selection=AssetSelection.groups(*PIPELINE_GROUPS),
    description="""
    Install dbt packages, build staging views, intermediate and mart tables
    over the Snowflake TPCH sample data, then run all dbt tests.
    """,
)

tpch_daily_schedule = ScheduleDefinition(
    name="tpch_daily_schedule",
    job=tpch_daily_job,
    cron_schedule=settings.schedule_cron,
    execution_timezone=settings.timezone,
    default_status=DefaultScheduleStatus.RUNNING,
)
