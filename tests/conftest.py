"""Pytest fixtures for tpch_pipeline tests.

The dbt models are plain SQL plus a little Jinja, so they can be rendered
with jinja2 and executed against an in-memory DuckDB warehouse loaded with a
handful of TPCH-shaped rows. This checks model logic and the declared
invariants without a Snowflake account.

Key fixtures:
- project_dir: path to the dbt project (tpch_pipeline/)
- render_sql: render a model/test file to executable SQL
- warehouse: DuckDB connection with tpch_orders / tpch_lineitem loaded
- built_warehouse: warehouse with every model layer built
- make_invocation / fake_dbt: stand-ins for DbtCliResource and its invocations
"""

import itertools
import json
from datetime import date
from pathlib import Path
from types import SimpleNamespace

import duckdb
import pytest
from jinja2 import Environment

PROJECT_DIR = Path(__file__).parent.parent / "tpch_pipeline"

# Build order, as dbt would derive it from ref()
MODELS = [
    ("dag/staging/stg_tpch_orders.sql", "view"),
    ("dag/staging/stg_tpch_line_items.sql", "view"),
    ("dag/intermediate/int_order_items.sql", "table"),
    ("dag/intermediate/int_order_items_summary.sql", "table"),
    ("dag/marts/fct_orders.sql", "table"),
]


def _generate_surrogate_key(field_list: list[str]) -> str:
    """Same shape as dbt_utils.generate_surrogate_key: md5 over coalesced fields."""
    fields = [
        f"coalesce(cast({field} as varchar), '_dbt_utils_surrogate_key_null_')"
        for field in field_list
    ]
    return "md5(" + " || '-' || ".join(fields) + ")"


def _make_environment() -> Environment:
    env = Environment()
    macros = env.from_string((PROJECT_DIR / "macros" / "pricing.sql").read_text()).module

    env.globals.update(
        ref=lambda name: name,
        source=lambda source_name, table_name: f"{source_name}_{table_name}",
        config=lambda **kwargs: "",
        dbt_utils=SimpleNamespace(generate_surrogate_key=_generate_surrogate_key),
        discounted_amount=macros.discounted_amount,
    )
    return env


@pytest.fixture(scope="session")
def project_dir() -> Path:
    return PROJECT_DIR


@pytest.fixture(scope="session")
def render_sql():
    """Render a project file (e.g. "dag/marts/fct_orders.sql") to SQL."""
    env = _make_environment()

    def _render(relative_path: str) -> str:
        template = (PROJECT_DIR / relative_path).read_text()
        return env.from_string(template).render()

    return _render


ORDERS = [
    # o_orderkey, o_custkey, o_orderstatus, o_totalprice, o_orderdate
    (1, 370, "O", 172799.49, date(1996, 1, 2)),
    (2, 781, "O", 38426.09, date(1996, 12, 1)),
    (3, 1234, "F", 205654.30, date(1993, 10, 14)),
    (4, 1369, "P", 56000.91, date(1995, 10, 11)),
    # order without line items: dropped by the inner join in fct_orders
    (5, 445, "F", 105367.67, date(1994, 7, 30)),
]

LINEITEMS = [
    # l_orderkey, l_partkey, l_linenumber, l_quantity, l_extendedprice, l_discount, l_tax
    (1, 1552, 1, 17, 24710.35, 0.04, 0.02),
    (1, 674, 2, 36, 56688.12, 0.09, 0.06),
    (1, 637, 3, 8, 12301.04, 0.10, 0.02),
    (2, 1062, 1, 38, 36596.28, 0.00, 0.05),
    (3, 43, 1, 45, 42436.80, 0.06, 0.00),
    (3, 191, 2, 49, 53468.31, 0.10, 0.00),
    (4, 881, 1, 30, 53620.20, 0.03, 0.08),
]


def load_tpch(conn: duckdb.DuckDBPyConnection, orders=ORDERS, lineitems=LINEITEMS) -> None:
    conn.execute("""
        CREATE TABLE tpch_orders (
            o_orderkey BIGINT,
            o_custkey BIGINT,
            o_orderstatus VARCHAR,
            o_totalprice DECIMAL(12, 2),
            o_orderdate DATE
        )
    """)
    conn.execute("""
        CREATE TABLE tpch_lineitem (
            l_orderkey BIGINT,
            l_partkey BIGINT,
            l_linenumber INTEGER,
            l_quantity DECIMAL(12, 2),
            l_extendedprice DECIMAL(12, 2),
            l_discount DECIMAL(12, 2),
            l_tax DECIMAL(12, 2)
        )
    """)
    conn.executemany("INSERT INTO tpch_orders VALUES (?, ?, ?, ?, ?)", orders)
    conn.executemany("INSERT INTO tpch_lineitem VALUES (?, ?, ?, ?, ?, ?, ?)", lineitems)


def build_models(conn: duckdb.DuckDBPyConnection, render) -> None:
    """Create every model in dependency order with its materialization."""
    for relative_path, materialization in MODELS:
        name = Path(relative_path).stem
        conn.execute(f"CREATE {materialization.upper()} {name} AS {render(relative_path)}")


@pytest.fixture
def warehouse():
    conn = duckdb.connect(":memory:")
    load_tpch(conn)
    yield conn
    conn.close()


@pytest.fixture
def built_warehouse(warehouse, render_sql):
    build_models(warehouse, render_sql)
    return warehouse


@pytest.fixture
def make_warehouse(render_sql):
    """Factory: build all models over custom orders / line items."""
    connections = []

    def _make(orders=ORDERS, lineitems=LINEITEMS) -> duckdb.DuckDBPyConnection:
        conn = duckdb.connect(":memory:")
        connections.append(conn)
        load_tpch(conn, orders, lineitems)
        build_models(conn, render_sql)
        return conn

    yield _make

    for conn in connections:
        conn.close()


# -----------------------------------------------------------------------------
# dbt doubles
# -----------------------------------------------------------------------------

EMPTY_RUN_RESULTS = {"results": [], "elapsed_time": 0.0}


class FakeInvocation:
    """Stands in for a finished DbtCliInvocation.

    run_results=None means dbt exited before writing run_results.json.
    """

    def __init__(self, target_path: Path, success=True, run_results=EMPTY_RUN_RESULTS, error=None):
        self.target_path = target_path
        self.success = success
        self.error = error
        target_path.mkdir(parents=True, exist_ok=True)
        if run_results is not None:
            (target_path / "run_results.json").write_text(json.dumps(run_results))

    def wait(self) -> "FakeInvocation":
        return self

    def is_successful(self) -> bool:
        return self.success

    def get_error(self) -> Exception | None:
        return Exception(self.error) if self.error else None

    def get_artifact(self, artifact: str) -> dict:
        return json.loads((self.target_path / artifact).read_text())


class FakeDbt:
    """Records dbt.cli() arguments and hands out queued invocations."""

    def __init__(self, invocations, default_invocation):
        self.invocations = list(invocations)
        self.default_invocation = default_invocation
        self.calls: list[list[str]] = []
        self.raise_on_error: list[bool] = []

    def cli(self, args, raise_on_error=True, context=None):
        self.calls.append(list(args))
        self.raise_on_error.append(raise_on_error)
        if self.invocations:
            return self.invocations.pop(0)
        return self.default_invocation()


@pytest.fixture
def make_invocation(tmp_path):
    """Factory: FakeInvocation with its own target/ directory."""
    counter = itertools.count()

    def _make(success=True, run_results=EMPTY_RUN_RESULTS, error=None) -> FakeInvocation:
        target_path = tmp_path / f"target_{next(counter)}"
        return FakeInvocation(target_path, success, run_results, error)

    return _make


@pytest.fixture
def fake_dbt(make_invocation):
    """Factory: FakeDbt returning the given invocations, then successful ones."""

    def _make(*invocations: FakeInvocation) -> FakeDbt:
        return FakeDbt(invocations, make_invocation)

    return _make
