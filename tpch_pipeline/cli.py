"""dbt runner for the TPCH project outside of Dagster.

Usage:
    python -m tpch_pipeline deps
    python -m tpch_pipeline debug
    python -m tpch_pipeline run                      # all layers, in order
    python -m tpch_pipeline run --layer staging      # one layer
    python -m tpch_pipeline test
    python -m tpch_pipeline docs                     # dbt docs generate
    python -m tpch_pipeline run --target prod
"""
import argparse
import sys

from dagster_dbt import DbtCliResource

from .exceptions import ConfigurationError
from .lib import (
    LAYERS,
    command_args,
    format_counts,
    invocation_error,
    read_run_results,
    run_args,
    summarize_run_results,
)
from .resources import DBT_PROJECT_DIR, dbt_project, dbt_resource, settings
from .settings import require_snowflake_settings

COMMANDS = ["deps", "debug", "run", "test", "docs"]

# Commands that open a Snowflake connection
CONNECTED_COMMANDS = {"debug", "run", "test", "docs"}


def build_invocations(command: str, layer: str | None = None) -> list[list[str]]:
    """dbt argument lists to run, in order, for a CLI command."""
    if command == "run":
        layers = [layer] if layer else list(LAYERS)
        return [run_args(name) for name in layers]
    return [command_args(command)]


def get_dbt_resource(target: str | None = None) -> DbtCliResource:
    """The shared dbt resource, or a copy pointed at another profiles.yml target."""
    if not target or target == settings.dbt_target:
        return dbt_resource
    return DbtCliResource(
        project_dir=dbt_project,
        profiles_dir=str(DBT_PROJECT_DIR),
        dbt_executable=settings.dbt_executable,
        target=target,
    )


def run_command(
    command: str,
    layer: str | None = None,
    dbt: DbtCliResource | None = None,
) -> int:
    """Run one CLI command. Returns the process exit code."""
    dbt = dbt or dbt_resource
    failed = False

    for args in build_invocations(command, layer):
        print(f"\nRunning dbt {' '.join(args)}")
        invocation = dbt.cli(args, raise_on_error=False).wait()

        if command == "test":
            run_results = read_run_results(invocation)
            if run_results is None:
                # dbt stopped before running any test
                print("  FAILED")
                error = invocation_error(invocation)
                if error:
                    print(f"  {error}")
                return 1

            summary = summarize_run_results(run_results)
            print(f"  {summary['total']} tests: {format_counts(summary)}")
            for warning in summary["warnings"]:
                print(f"  WARN {warning['name']}: {warning['message']}")
            for failure in summary["failures"]:
                print(f"  FAIL {failure['name']}: {failure['message']}")

        if invocation.is_successful():
            print("  OK")
        else:
            print("  FAILED")
            failed = True
            # later layers depend on this one
            break

    return 1 if failed else 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="tpch_pipeline",
        description="Run the TPCH dbt project against Snowflake",
    )
    parser.add_argument("command", choices=COMMANDS, help="dbt command to run")
    parser.add_argument(
        "--layer",
        choices=list(LAYERS),
        help="Only run one model layer (run only)",
    )
    parser.add_argument(
        "--target",
        help=f"profiles.yml target (default: {settings.dbt_target})",
    )

    args = parser.parse_args(argv)

    if args.layer and args.command != "run":
        parser.error("--layer only applies to the run command")

    if args.command in CONNECTED_COMMANDS:
        try:
            require_snowflake_settings(settings)
        except ConfigurationError as e:
            print(f"Error: {e}")
            return 2

    return run_command(args.command, args.layer, get_dbt_resource(args.target))


if __name__ == "__main__":
    sys.exit(main())
