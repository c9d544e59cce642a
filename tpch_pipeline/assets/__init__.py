# Model layer assets (assets/layers.py) need target/manifest.json at import,
# so they are imported by definitions.py rather than here.
from .packages import dbt_packages, DBT_PACKAGES_KEY
from .quality import dbt_test_results, FCT_ORDERS_KEY

__all__ = [
    # Step 1: dbt deps
    "dbt_packages",
    "DBT_PACKAGES_KEY",
    # Step 5: dbt test
    "dbt_test_results",
    "FCT_ORDERS_KEY",
]
