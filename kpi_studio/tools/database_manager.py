import json
import re
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from typing import Dict, List, Tuple, Any, Optional
import logging
from kpi_studio.config.config import Config

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "public"

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS kpi (
        name TEXT PRIMARY KEY,
        description TEXT,
        formula TEXT,
        table_name TEXT,
        columns JSONB,
        created_at TIMESTAMPTZ DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS insight (
        id SERIAL PRIMARY KEY,
        name TEXT,
        description TEXT,
        kpi_name TEXT REFERENCES kpi(name) ON DELETE SET NULL,
        formula TEXT,
        schedule TEXT,
        exec_time TEXT,
        alert_high NUMERIC NULL,
        alert_low NUMERIC NULL,
        created_at TIMESTAMPTZ DEFAULT NOW()
    )
    """,
    # Older kpi tables predate these columns
    "ALTER TABLE kpi ADD COLUMN IF NOT EXISTS table_name TEXT",
    "ALTER TABLE kpi ADD COLUMN IF NOT EXISTS columns JSONB",
]

LIST_TABLES_SQL = """
SELECT table_schema, table_name
FROM information_schema.tables
WHERE table_type = 'BASE TABLE'
  AND table_schema NOT IN ('pg_catalog', 'information_schema')
ORDER BY table_schema, table_name
"""

LIST_COLUMNS_SQL = """
SELECT column_name, data_type
FROM information_schema.columns
WHERE table_schema = :schema AND table_name = :table_name
ORDER BY ordinal_position
"""

UPSERT_KPI_SQL = """
INSERT INTO kpi (name, description, formula, table_name, columns)
VALUES (:name, :description, :formula, :table_name, CAST(:columns AS JSONB))
ON CONFLICT (name) DO UPDATE SET
    description = EXCLUDED.description,
    formula = EXCLUDED.formula,
    table_name = EXCLUDED.table_name,
    columns = EXCLUDED.columns
"""

FETCH_KPIS_SQL = """
SELECT name, description, formula, table_name, columns, created_at
FROM kpi
ORDER BY name
"""

INSERT_INSIGHT_SQL = """
INSERT INTO insight (name, description, kpi_name, formula, schedule, exec_time, alert_high, alert_low)
VALUES (:name, :description, :kpi_name, :formula, :schedule, :exec_time, :alert_high, :alert_low)
"""


def split_table_name(table: str) -> Tuple[str, str]:
    """Split ``schema.table`` into its parts, defaulting to the public schema"""
    if '.' in table:
        parts = table.split('.')
        return parts[0], parts[1]
    return DEFAULT_SCHEMA, table


def build_limited_query(sql: str, limit: int = 5) -> str:
    """Strip one trailing terminator and append a row limit"""
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise ValueError(f"Row limit must be a non-negative integer, got {limit!r}")
    statement = re.sub(r';$', '', sql.strip())
    return f"{statement} LIMIT {limit};"


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value if value else None


def _parse_columns(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, list):
        return [str(column) for column in value]
    return json.loads(value)


class DatabaseManager:
    """Database manager for the KPI and insight tables"""

    def __init__(self, database_url: Optional[str] = None, engine: Optional[Engine] = None):
        self.database_url = database_url or Config.get_database_url()
        self.engine = engine
        if self.engine is None:
            self.connect()

    def connect(self):
        """Create the pooled SQLAlchemy engine"""
        try:
            self.engine = create_engine(
                self.database_url,
                pool_size=Config.DB_POOL_SIZE,
                max_overflow=Config.DB_MAX_OVERFLOW,
                pool_pre_ping=True
            )
            logger.info("Database engine created")
        except Exception as e:
            logger.error(f"Error creating database engine: {e}")
            raise

    def ensure_tables(self):
        """Create the kpi and insight tables if missing and add newer columns.

        Statements are issued one by one in autocommit mode, so a failure part
        way through leaves the earlier statements applied.
        """
        try:
            with self.engine.connect() as conn:
                conn = conn.execution_options(isolation_level="AUTOCOMMIT")
                for statement in SCHEMA_STATEMENTS:
                    conn.execute(text(statement))
        except Exception as e:
            logger.error(f"Error creating tables: {e}")
            raise
        logger.info("Database tables ensured: kpi, insight")

    def list_tables(self) -> List[str]:
        """List every base table as schema.table"""
        try:
            with self.engine.connect() as conn:
                result = conn.execute(text(LIST_TABLES_SQL))
                return [f"{row.table_schema}.{row.table_name}" for row in result]
        except Exception as e:
            logger.error(f"Error listing tables: {e}")
            raise

    def list_columns(self, table: str) -> List[Dict[str, str]]:
        """List column names and data types of a table, in physical order.

        An unknown table yields an empty list.
        """
        schema, table_name = split_table_name(table)
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    text(LIST_COLUMNS_SQL),
                    {'schema': schema, 'table_name': table_name}
                )
                return [
                    {'column_name': row.column_name, 'data_type': row.data_type}
                    for row in result
                ]
        except Exception as e:
            logger.error(f"Error listing columns for {table}: {e}")
            raise

    def run_query(self, sql: str, limit: int = 5) -> List[Dict[str, Any]]:
        """Execute caller-supplied SQL with a row limit appended.

        The text is passed to the driver untouched apart from the limit clause;
        there is no statement validation and no timeout.
        """
        limited_sql = build_limited_query(sql, limit)
        try:
            with self.engine.begin() as conn:
                result = conn.exec_driver_sql(limited_sql)
                if not result.returns_rows:
                    return []
                return [dict(row) for row in result.mappings().all()]
        except Exception as e:
            logger.error(f"Error executing query: {e}")
            raise

    def insert_kpi(self, name: str, formula: str, description: Optional[str] = None,
                   table_name: Optional[str] = None, columns: Optional[List[str]] = None):
        """Insert a KPI, overwriting the existing row with the same name"""
        params = {
            'name': name,
            'description': _blank_to_none(description),
            'formula': formula,
            'table_name': _blank_to_none(table_name),
            'columns': json.dumps(columns) if columns is not None else None
        }
        try:
            with self.engine.begin() as conn:
                conn.execute(text(UPSERT_KPI_SQL), params)
            logger.info(f"KPI '{name}' saved")
        except Exception as e:
            logger.error(f"Error saving KPI {name}: {e}")
            raise

    def fetch_kpis(self) -> List[Dict[str, Any]]:
        """Fetch all KPIs ordered by name"""
        try:
            with self.engine.connect() as conn:
                result = conn.execute(text(FETCH_KPIS_SQL))
                return [
                    {
                        'name': row.name,
                        'description': row.description,
                        'formula': row.formula,
                        'table_name': row.table_name,
                        'columns': _parse_columns(row.columns),
                        'created_at': row.created_at
                    }
                    for row in result
                ]
        except Exception as e:
            logger.error(f"Error fetching KPIs: {e}")
            raise

    def insert_insight(self, name: str, formula: str, description: Optional[str] = None,
                       kpi_name: Optional[str] = None, schedule: Optional[str] = None,
                       exec_time: Optional[str] = None, alert_high: Optional[float] = None,
                       alert_low: Optional[float] = None):
        """Insert one insight row"""
        params = {
            'name': name,
            'description': _blank_to_none(description),
            'kpi_name': _blank_to_none(kpi_name),
            'formula': formula,
            'schedule': _blank_to_none(schedule),
            'exec_time': _blank_to_none(exec_time),
            'alert_high': alert_high,
            'alert_low': alert_low
        }
        try:
            with self.engine.begin() as conn:
                conn.execute(text(INSERT_INSIGHT_SQL), params)
            logger.info(f"Insight '{name}' saved")
        except Exception as e:
            logger.error(f"Error saving insight {name}: {e}")
            raise

    def close(self):
        """Dispose of pooled connections"""
        if self.engine:
            self.engine.dispose()
        logger.info("Database connections closed")
