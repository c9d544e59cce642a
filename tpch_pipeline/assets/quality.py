"""
Quality Assets

Runs every dbt test (source, model and singular tests) once the mart is
built. Warnings are logged; failures and errors fail the step.
"""
from dagster import AssetExecutionContext, AssetKey, MaterializeResult, MetadataValue, asset
from dagster_dbt import DbtCliResource

from ..exceptions import DbtInvocationError, DbtTestFailure, raise_as_dagster_failure
from ..lib import (
    check_test_summary,
    command_args,
    format_counts,
    invocation_error,
    read_run_results,
    summarize_run_results,
)

# dagster-dbt's default key for the fct_orders model
FCT_ORDERS_KEY = AssetKey("fct_orders")


@asset(group_name="quality", deps=[FCT_ORDERS_KEY])
def dbt_test_results(context: AssetExecutionContext, dbt: DbtCliResource) -> MaterializeResult:
    """Run `dbt test` and summarise run_results.json."""
    args = command_args("test")
    # Failing tests exit non-zero; read the artifact instead of raising
    invocation = dbt.cli(args, raise_on_error=False).wait()

    run_results = read_run_results(invocation)
    if run_results is None:
        error = invocation_error(invocation)
        context.log.error(f"dbt test did not run: {error or 'no run_results.json written'}")
        raise_as_dagster_failure(DbtInvocationError(args, error))

    summary = summarize_run_results(run_results)
    context.log.info(f"dbt test: {summary['total']} tests, {format_counts(summary)}")

    for warning in summary["warnings"]:
        context.log.warning(
            f"Test {warning['name']} warned ({warning['failures']} rows): {warning['message']}"
        )

    try:
        check_test_summary(summary)
    except DbtTestFailure as e:
        for failure in e.failures:
            context.log.error(f"Test {failure['name']} failed: {failure['message']}")
        raise_as_dagster_failure(e)

    return MaterializeResult(
        metadata={
            "total": summary["total"],
            "passed": summary["pass"],
            "warned": summary["warn"],
            "skipped": summary["skipped"],
            "warnings": MetadataValue.json(summary["warnings"]),
            "elapsed_time": summary["elapsed_time"] or 0.0,
        }
    )
