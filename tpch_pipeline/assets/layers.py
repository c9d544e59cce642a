"""
Model Layer Assets - Factory Pattern

One @dbt_assets per layer, selected by the tag dbt_project.yml sets on the
layer's folder:

- staging: stg_* views over the TPCH source tables
- intermediate: int_* tables (joins, per-order aggregates)
- marts: fct_* tables

Dependencies between layers are auto-wired via dbt ref(). The staging layer
additionally depends on dbt_packages so the daily job installs packages first.
dbt tests are not loaded as asset checks; they run as one step in quality.py.
"""
from typing import Any, Mapping, Sequence

from dagster import AssetExecutionContext, AssetKey
from dagster_dbt import (
    DagsterDbtTranslator,
    DagsterDbtTranslatorSettings,
    DbtCliResource,
    dbt_assets,
)

from ..lib import layer_select, run_args
from ..resources import DBT_MANIFEST, dbt_project
from .packages import DBT_PACKAGES_KEY


# =============================================================================
# Translator
# =============================================================================

class LayerDbtTranslator(DagsterDbtTranslator):
    """Puts every model of a layer in one group, with optional extra upstreams."""

    def __init__(self, layer: str, upstream: Sequence[AssetKey] = ()):
        super().__init__(
            settings=DagsterDbtTranslatorSettings(enable_asset_checks=False)
        )
        self.layer = layer
        self.upstream = list(upstream)

    def get_group_name(self, dbt_resource_props: Mapping[str, Any]) -> str:
        return self.layer

    def get_asset_spec(self, manifest, unique_id, project):
        spec = super().get_asset_spec(manifest, unique_id, project)
        if self.upstream and unique_id.startswith("model."):
            spec = spec.merge_attributes(deps=self.upstream)
        return spec


# =============================================================================
# dbt Asset Factory - One @dbt_assets per layer
# =============================================================================

def make_layer_assets(layer: str, upstream: Sequence[AssetKey] = ()):
    """Factory to create the @dbt_assets for one model layer."""

    @dbt_assets(
        manifest=DBT_MANIFEST,
        project=dbt_project,
        select=layer_select(layer),
        dagster_dbt_translator=LayerDbtTranslator(layer, upstream),
        name=f"{layer}_dbt_models",
    )
    def _layer_assets(context: AssetExecutionContext, dbt: DbtCliResource):
        context.log.info(f"[{layer}] Running dbt models ({layer_select(layer)})")
        yield from dbt.cli(run_args(), context=context).stream()

    return _layer_assets


staging_dbt_models = make_layer_assets("staging", upstream=[DBT_PACKAGES_KEY])
intermediate_dbt_models = make_layer_assets("intermediate")
mart_dbt_models = make_layer_assets("marts")

layer_assets = [staging_dbt_models, intermediate_dbt_models, mart_dbt_models]
