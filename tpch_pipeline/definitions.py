"""
TPCH Pipeline Dagster Definitions

Asset groups (one per step of the daily job):
- dependencies: dbt_packages - `dbt deps`
- staging: stg_* views over SNOWFLAKE_SAMPLE_DATA.TPCH_SF1
- intermediate: int_* tables (order items, per-order summary)
- marts: fct_orders
- quality: dbt_test_results - `dbt test` over sources, models and singular tests

Schedules:
- tpch_daily_schedule - runs tpch_daily_job once a day
"""
from dagster import Definitions

from .assets import dbt_packages, dbt_test_results
from .assets.layers import layer_assets
from .resources import dbt_resource
from .schedules import tpch_daily_job, tpch_daily_schedule

all_assets = [dbt_packages, *layer_assets, dbt_test_results]

defs = Definitions(
    assets=all_assets,
    jobs=[tpch_daily_job],
    schedules=[tpch_daily_schedule],
    resources={
        "dbt": dbt_resource,
    },
)
