from dagster_dbt import DbtCliResource, DbtProject

from ..settings import PACKAGE_DIR, get_settings

settings = get_settings()

# Paths
DBT_PROJECT_DIR = PACKAGE_DIR  # tpch_pipeline/
DBT_MANIFEST = DBT_PROJECT_DIR / "target" / "manifest.json"

dbt_project = DbtProject(
    project_dir=DBT_PROJECT_DIR,
    profiles_dir=DBT_PROJECT_DIR,
    target=settings.dbt_target,
)

# Re-parses the project into target/manifest.json under `dagster dev`
dbt_project.prepare_if_dev()

# Resources
dbt_resource = DbtCliResource(
    project_dir=dbt_project,
    profiles_dir=str(DBT_PROJECT_DIR),
    dbt_executable=settings.dbt_executable,
    target=settings.dbt_target,
)

__all__ = [
    "dbt_resource",
    "dbt_project",
    "settings",
    "DBT_PROJECT_DIR",
    "DBT_MANIFEST",
]
