# tpch_pipeline is both the Python package and the dbt project:
# - dag/sources/: TPCH source declarations + source tests
# - dag/staging/: stg_* views
# - dag/intermediate/: int_* tables
# - dag/marts/: fct_* tables + model tests
# - tests/: singular dbt tests (kept outside dag/ so dbt does not parse them as models)
# - macros/: shared SQL macros
# Dagster definitions live in definitions.py (importing it needs target/manifest.json).
