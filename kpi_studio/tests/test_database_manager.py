"""
DatabaseManager tests against a mocked SQLAlchemy engine
"""

import json
import pytest
from types import SimpleNamespace
from unittest.mock import MagicMock, Mock

from kpi_studio.tools.database_manager import (
    DatabaseManager,
    SCHEMA_STATEMENTS,
    build_limited_query,
    split_table_name,
)


def create_mock_engine():
    """Engine whose connect()/begin() context managers yield the same connection"""
    engine = MagicMock()
    conn = MagicMock()
    engine.connect.return_value.__enter__.return_value = conn
    engine.begin.return_value.__enter__.return_value = conn
    conn.execution_options.return_value = conn
    return engine, conn


def executed_sql(call):
    return str(call.args[0])


class TestHelpers:

    def test_split_qualified_table(self):
        assert split_table_name("sales.orders") == ("sales", "orders")

    def test_split_unqualified_table_defaults_to_public(self):
        assert split_table_name("orders") == ("public", "orders")

    def test_limit_appended(self):
        assert build_limited_query("SELECT 1", 5) == "SELECT 1 LIMIT 5;"

    def test_trailing_semicolon_removed_once(self):
        assert build_limited_query("  SELECT * FROM t;  ", 3) == "SELECT * FROM t LIMIT 3;"

    def test_zero_limit(self):
        assert build_limited_query("SELECT 1", 0) == "SELECT 1 LIMIT 0;"

    @pytest.mark.parametrize("limit", [-1, 2.5, "5", True])
    def test_invalid_limit_rejected(self, limit):
        with pytest.raises(ValueError):
            build_limited_query("SELECT 1", limit)


class TestDatabaseManager:

    def test_ensure_tables_runs_every_statement_in_autocommit(self):
        engine, conn = create_mock_engine()
        DatabaseManager(engine=engine).ensure_tables()

        conn.execution_options.assert_called_once_with(isolation_level="AUTOCOMMIT")
        assert conn.execute.call_count == len(SCHEMA_STATEMENTS)
        statements = [executed_sql(call) for call in conn.execute.call_args_list]
        assert "ON DELETE SET NULL" in statements[1]

    def test_ensure_tables_propagates_errors(self):
        engine, conn = create_mock_engine()
        conn.execute.side_effect = RuntimeError("connection refused")
        with pytest.raises(RuntimeError, match="connection refused"):
            DatabaseManager(engine=engine).ensure_tables()

    def test_list_tables_formats_schema_dot_table(self):
        engine, conn = create_mock_engine()
        conn.execute.return_value = [
            Mock(table_schema="public", table_name="sales"),
            Mock(table_schema="crm", table_name="accounts"),
        ]
        assert DatabaseManager(engine=engine).list_tables() == ["public.sales", "crm.accounts"]

    def test_list_columns_binds_schema_and_table(self):
        engine, conn = create_mock_engine()
        conn.execute.return_value = [
            Mock(column_name="id", data_type="integer"),
            Mock(column_name="amount", data_type="numeric"),
        ]
        columns = DatabaseManager(engine=engine).list_columns("orders")

        assert conn.execute.call_args.args[1] == {'schema': 'public', 'table_name': 'orders'}
        assert columns == [
            {'column_name': 'id', 'data_type': 'integer'},
            {'column_name': 'amount', 'data_type': 'numeric'},
        ]

    def test_run_query_passes_sql_to_driver_with_limit(self):
        engine, conn = create_mock_engine()
        result = conn.exec_driver_sql.return_value
        result.returns_rows = True
        result.mappings.return_value.all.return_value = [{'total': 42}]

        rows = DatabaseManager(engine=engine).run_query("SELECT SUM(amount) AS total FROM public.sales;", 5)

        conn.exec_driver_sql.assert_called_once_with("SELECT SUM(amount) AS total FROM public.sales LIMIT 5;")
        assert rows == [{'total': 42}]

    def test_run_query_without_rows(self):
        engine, conn = create_mock_engine()
        conn.exec_driver_sql.return_value.returns_rows = False
        assert DatabaseManager(engine=engine).run_query("UPDATE t SET x = 1", 5) == []

    def test_run_query_propagates_database_errors(self):
        engine, conn = create_mock_engine()
        conn.exec_driver_sql.side_effect = RuntimeError('relation "missing" does not exist')
        with pytest.raises(RuntimeError, match="does not exist"):
            DatabaseManager(engine=engine).run_query("SELECT * FROM missing", 5)

    def test_insert_kpi_is_an_upsert(self):
        engine, conn = create_mock_engine()
        DatabaseManager(engine=engine).insert_kpi(
            name="total_sales",
            formula="SELECT SUM(amount) FROM public.sales",
            description="",
            table_name="public.sales",
            columns=["public.sales.amount"]
        )

        sql = executed_sql(conn.execute.call_args)
        params = conn.execute.call_args.args[1]
        assert "ON CONFLICT (name) DO UPDATE" in sql
        assert params['description'] is None
        assert json.loads(params['columns']) == ["public.sales.amount"]

    def test_insert_kpi_keeps_an_empty_column_list(self):
        engine, conn = create_mock_engine()
        DatabaseManager(engine=engine).insert_kpi("total_sales", "SELECT 1", columns=[])

        assert conn.execute.call_args.args[1]['columns'] == '[]'

    def test_insert_kpi_without_columns_stores_null(self):
        engine, conn = create_mock_engine()
        DatabaseManager(engine=engine).insert_kpi("total_sales", "SELECT 1")

        assert conn.execute.call_args.args[1]['columns'] is None

    def test_fetch_kpis_parses_columns(self):
        engine, conn = create_mock_engine()
        conn.execute.return_value = [
            SimpleNamespace(name="k1", description=None, formula="SELECT 1", table_name=None,
                            columns='["public.t.a"]', created_at=None),
        ]

        kpis = DatabaseManager(engine=engine).fetch_kpis()

        assert kpis[0]['name'] == "k1"
        assert kpis[0]['columns'] == ["public.t.a"]

    def test_insert_insight_keeps_zero_bounds(self):
        engine, conn = create_mock_engine()
        DatabaseManager(engine=engine).insert_insight(
            name="weekly", formula="Sales are up", kpi_name="total_sales",
            alert_high=0, alert_low=0
        )

        params = conn.execute.call_args.args[1]
        assert params['alert_high'] == 0
        assert params['alert_low'] == 0
        assert params['schedule'] is None

    def test_close_disposes_engine(self):
        engine, _ = create_mock_engine()
        DatabaseManager(engine=engine).close()
        engine.dispose.assert_called_once()
