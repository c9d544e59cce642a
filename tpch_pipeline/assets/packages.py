"""dbt package installation (`dbt deps`), the first step of the daily job."""
from dagster import AssetExecutionContext, AssetKey, MaterializeResult, asset
from dagster_dbt import DbtCliResource

from ..lib import command_args, read_packages
from ..resources import DBT_PROJECT_DIR

DBT_PACKAGES_KEY = AssetKey("dbt_packages")


@asset(key=DBT_PACKAGES_KEY, group_name="dependencies")
def dbt_packages(context: AssetExecutionContext, dbt: DbtCliResource) -> MaterializeResult:
    """Install the packages listed in packages.yml into dbt_packages/."""
    packages = read_packages(DBT_PROJECT_DIR)
    context.log.info(f"Installing {len(packages)} dbt package(s): {', '.join(packages) or 'none'}")

    # Raises DagsterDbtCliRuntimeError if deps fails
    dbt.cli(command_args("deps")).wait()

    return MaterializeResult(
        metadata={
            "package_count": len(packages),
            "packages": packages,
        }
    )
