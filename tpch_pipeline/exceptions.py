"""Exception classes for the TPCH pipeline.

Usage:
    from tpch_pipeline.exceptions import DbtTestFailure, raise_as_dagster_failure

    try:
        check_test_summary(summary)
    except DbtTestFailure as e:
        raise_as_dagster_failure(e)
"""

from typing import Any

import dagster as dg


class PipelineError(Exception):
    """Base exception for all pipeline errors."""

    pass


class ConfigurationError(PipelineError):
    """Raised when required settings are missing from the environment.

    Attributes:
        missing: Names of the environment variables that are not set
    """

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            f"Missing required settings: {', '.join(missing)}. "
            "Set them in the environment or in .env at the repository root."
        )


class DbtTestFailure(PipelineError):
    """Raised when `dbt test` reports failing or erroring tests.

    Attributes:
        failures: One dict per failing test (name, message, failures)
        summary: Full status summary from summarize_run_results
    """

    def __init__(self, failures: list[dict[str, Any]], summary: dict[str, Any]) -> None:
        self.failures = failures
        self.summary = summary
        names = ", ".join(f["name"] for f in failures)
        super().__init__(f"{len(failures)} dbt test(s) failed: {names}")


class DbtInvocationError(PipelineError):
    """Raised when dbt exits before writing run_results.json.

    Connection and compilation errors stop dbt before any node runs.

    Attributes:
        command: dbt arguments, e.g. ["test"]
        error: dbt's own error message, if dagster-dbt captured one
    """

    def __init__(self, command: list[str], error: str | None = None) -> None:
        self.command = command
        self.error = error
        message = f"dbt {' '.join(command)} failed before writing run_results.json"
        if error:
            message = f"{message}: {error}"
        super().__init__(message)


def raise_as_dagster_failure(error: Exception) -> None:
    """Convert a pipeline exception to a Dagster Failure with structured metadata.

    Raises:
        dagster.Failure: Always
    """
    metadata: dict[str, Any] = {
        "error_type": dg.MetadataValue.text(type(error).__name__),
        "error_message": dg.MetadataValue.text(str(error)),
    }

    if isinstance(error, DbtTestFailure):
        metadata.update(
            {
                "failed_tests": dg.MetadataValue.json(error.failures),
                "passed": dg.MetadataValue.int(error.summary.get("pass", 0)),
                "warned": dg.MetadataValue.int(error.summary.get("warn", 0)),
            }
        )
    elif isinstance(error, DbtInvocationError):
        metadata["dbt_command"] = dg.MetadataValue.text(" ".join(error.command))
        metadata["suggestion"] = dg.MetadataValue.text(
            "Check the Snowflake connection with `python -m tpch_pipeline debug`"
        )
    elif isinstance(error, ConfigurationError):
        metadata["missing_settings"] = dg.MetadataValue.json(error.missing)

    raise dg.Failure(
        description=str(error),
        metadata=metadata,
    ) from error
