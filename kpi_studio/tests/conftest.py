"""
Shared fixtures: an in-memory stand-in for DatabaseManager and the real tools
built on top of it
"""

import pytest
from unittest.mock import Mock

from kpi_studio.agents.agent_factory import AgentResponse
from kpi_studio.tools.database_manager import build_limited_query, split_table_name
from kpi_studio.tools.tool_definitions import create_tools, tools_by_name


class FakeDatabaseManager:
    """Keeps tables, KPIs and insights in dictionaries"""

    def __init__(self, tables=None, query_results=None):
        self.tables = tables or {}
        self.query_results = query_results or {}
        self.kpis = {}
        self.insights = []
        self.executed = []

    def ensure_tables(self):
        pass

    def list_tables(self):
        return list(self.tables)

    def list_columns(self, table):
        schema, name = split_table_name(table)
        return [dict(column) for column in self.tables.get(f"{schema}.{name}", [])]

    def run_query(self, sql, limit=5):
        self.executed.append(build_limited_query(sql, limit))
        rows = self.query_results.get(sql.strip().rstrip(';'), [])
        return [dict(row) for row in rows[:limit]]

    def insert_kpi(self, name, formula, description=None, table_name=None, columns=None):
        self.kpis[name] = {
            'name': name,
            'description': description,
            'formula': formula,
            'table_name': table_name,
            'columns': columns,
            'created_at': None,
        }

    def fetch_kpis(self):
        return [self.kpis[name] for name in sorted(self.kpis)]

    def insert_insight(self, name, formula, description=None, kpi_name=None, schedule=None,
                       exec_time=None, alert_high=None, alert_low=None):
        self.insights.append({
            'name': name,
            'description': description,
            'kpi_name': kpi_name,
            'formula': formula,
            'schedule': schedule,
            'exec_time': exec_time,
            'alert_high': alert_high,
            'alert_low': alert_low,
        })

    def close(self):
        pass


SALES_COLUMNS = [
    {'column_name': 'id', 'data_type': 'integer'},
    {'column_name': 'amount', 'data_type': 'numeric'},
]

CUSTOMER_COLUMNS = [
    {'column_name': 'id', 'data_type': 'integer'},
    {'column_name': 'name', 'data_type': 'text'},
    {'column_name': 'region', 'data_type': 'text'},
]

AMOUNT_ROWS = [{'amount': 100 + index} for index in range(12)]


@pytest.fixture
def fake_db():
    return FakeDatabaseManager(
        tables={'public.sales': SALES_COLUMNS, 'crm.customers': CUSTOMER_COLUMNS},
        query_results={
            'SELECT amount FROM public.sales': AMOUNT_ROWS,
            'SELECT SUM(amount) AS total FROM public.sales': [{'total': 1266}],
        }
    )


@pytest.fixture
def llm_manager():
    manager = Mock()
    manager.generate_sql_query.return_value = "SELECT SUM(amount) AS total FROM public.sales"
    return manager


@pytest.fixture
def tools(fake_db, llm_manager):
    return tools_by_name(create_tools(fake_db, llm_manager))


@pytest.fixture
def insight_agent():
    agent = Mock()
    agent.generate.return_value = AgentResponse(
        text="Amounts are stable between 100 and 111 with a slight upward trend."
    )
    return agent
