"""
Tools package for KPI Studio

This package contains the database and LLM helpers and the tools the agents
and workflows use:
- list_tables: List user tables as schema.table
- list_columns: List columns and data types of a table
- run_query: Execute SQL with a row limit appended
- save_kpi: Insert or replace a KPI definition
- fetch_kpis: Read all saved KPIs
- save_insight: Insert an insight linked to a KPI
- generate_sql: Generate a PostgreSQL query from a natural language intent
"""
