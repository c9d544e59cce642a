"""
Pipeline Library

dbt helpers shared by the Dagster assets and the CLI. No Dagster API calls.

- LAYERS: execution order of the model layers (tag per layer)
- run_args / layer_select: build dbt CLI arguments
- read_run_results: run_results.json, or None when dbt never wrote it
- summarize_run_results: reduce run_results.json to status counts
- read_packages: list packages declared in packages.yml
"""
from collections import Counter
from pathlib import Path
from typing import Any, Iterable

import yaml

from .exceptions import DbtTestFailure


# =============================================================================
# Layers
# =============================================================================

# layer name -> dbt tag set on the folder in dbt_project.yml
LAYERS: dict[str, str] = {
    "staging": "staging",
    "intermediate": "intermediate",
    "marts": "mart",
}

TEST_STATUSES = ("pass", "warn", "fail", "error", "skipped")
FAILING_STATUSES = ("fail", "error")


def layer_select(layer: str) -> str:
    """Selector for a layer: "staging" -> "tag:staging"."""
    try:
        return f"tag:{LAYERS[layer]}"
    except KeyError:
        raise ValueError(
            f"Unknown layer '{layer}'. Available: {', '.join(LAYERS)}"
        ) from None


def run_args(layer: str | None = None) -> list[str]:
    """Arguments for `dbt run`, optionally limited to one layer."""
    if layer:
        return ["run", "--select", layer_select(layer)]
    return ["run"]


def command_args(command: str) -> list[str]:
    """Arguments for the other dbt commands the pipeline uses."""
    if command == "docs":
        return ["docs", "generate"]
    return [command]


# =============================================================================
# Run results
# =============================================================================

RUN_RESULTS_ARTIFACT = "run_results.json"


def read_run_results(invocation) -> dict[str, Any] | None:
    """
    run_results.json of a finished dbt invocation.

    None when dbt stopped before writing it (connection or compile errors).
    """
    if not (Path(invocation.target_path) / RUN_RESULTS_ARTIFACT).exists():
        return None
    return invocation.get_artifact(RUN_RESULTS_ARTIFACT)


def invocation_error(invocation) -> str | None:
    """dbt's error message for a failed invocation, if one was captured."""
    error = invocation.get_error()
    return str(error) if error else None


def _test_name(result: dict[str, Any]) -> str:
    """test.tpch_pipeline.fct_orders_discount -> fct_orders_discount"""
    unique_id = result.get("unique_id", "")
    parts = unique_id.split(".")
    if len(parts) >= 3:
        return parts[2]
    return unique_id


def summarize_run_results(run_results: dict[str, Any]) -> dict[str, Any]:
    """
    Reduce a dbt run_results.json artifact to counts per status.

    Returns:
        {
            "total": 12,
            "pass": 10, "warn": 1, "fail": 1, "error": 0, "skipped": 0,
            "warnings": [{"name": ..., "message": ..., "failures": ...}],
            "failures": [...],
            "elapsed_time": 3.2,
        }
    """
    results = run_results.get("results", [])
    counts = Counter(r.get("status", "unknown") for r in results)

    def _detail(r: dict[str, Any]) -> dict[str, Any]:
        return {
            "name": _test_name(r),
            "message": r.get("message"),
            "failures": r.get("failures"),
        }

    summary: dict[str, Any] = {"total": len(results)}
    for status in TEST_STATUSES:
        summary[status] = counts.get(status, 0)

    summary["warnings"] = [_detail(r) for r in results if r.get("status") == "warn"]
    summary["failures"] = [
        _detail(r) for r in results if r.get("status") in FAILING_STATUSES
    ]
    summary["elapsed_time"] = run_results.get("elapsed_time")
    return summary


def check_test_summary(summary: dict[str, Any]) -> dict[str, Any]:
    """Raise DbtTestFailure if any test failed or errored, else return summary."""
    if summary["failures"]:
        raise DbtTestFailure(summary["failures"], summary)
    return summary


# =============================================================================
# Packages
# =============================================================================

def read_packages(project_dir: Path) -> list[str]:
    """Package names declared in packages.yml (empty if the file is missing)."""
    packages_file = Path(project_dir) / "packages.yml"
    if not packages_file.exists():
        return []

    with open(packages_file) as f:
        config = yaml.safe_load(f) or {}

    names = []
    for entry in config.get("packages", []):
        # hub packages use "package", git packages "git", local packages "local"
        name = entry.get("package") or entry.get("git") or entry.get("local")
        if name:
            names.append(name)
    return names


def format_counts(summary: dict[str, Any], statuses: Iterable[str] = TEST_STATUSES) -> str:
    """'pass=10 warn=1 fail=0 error=0 skipped=0'"""
    return " ".join(f"{status}={summary.get(status, 0)}" for status in statuses)
