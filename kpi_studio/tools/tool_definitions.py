from typing import Dict, List, Any, Optional
from langchain.tools import BaseTool
from pydantic import BaseModel, Field
from kpi_studio.tools.database_manager import DatabaseManager
from kpi_studio.tools.llm_manager import LLMManager
import logging

logger = logging.getLogger(__name__)

# Input schemas for tools
class ListTablesInput(BaseModel):
    pass

class ListColumnsInput(BaseModel):
    table: str = Field(description="Table name in format schema.table or just table")

class RunQueryInput(BaseModel):
    sql: str = Field(description="SQL query to execute")
    limit: int = Field(default=5, ge=0, description="Number of rows to return")

class SaveKPIInput(BaseModel):
    name: str = Field(description="Unique KPI name")
    description: Optional[str] = Field(default=None, description="What the KPI measures")
    formula: str = Field(description="SQL query that computes the KPI")
    table: Optional[str] = Field(default=None, description="Source table name(s)")
    columns: Optional[List[str]] = Field(default=None, description="Columns used, in table.column format")

class FetchKPIsInput(BaseModel):
    pass

class SaveInsightInput(BaseModel):
    name: str = Field(description="Insight name")
    description: Optional[str] = Field(default=None, description="Insight description")
    kpi_name: Optional[str] = Field(default=None, description="Name of the KPI the insight is based on")
    formula: str = Field(description="Narrative text of the insight")
    schedule: Optional[str] = Field(default=None, description="How often the insight should be refreshed")
    exec_time: Optional[str] = Field(default=None, description="Time of day to refresh the insight")
    alert_high: Optional[float] = Field(default=None, description="Upper alert threshold")
    alert_low: Optional[float] = Field(default=None, description="Lower alert threshold")

class GenerateSQLInput(BaseModel):
    intent: str = Field(description="What to calculate, e.g. 'sum of sales per month'")
    tables: List[str] = Field(description="Tables the query may use")
    columns: List[str] = Field(default_factory=list, description="Columns in table.column format")
    limit: int = Field(default=10, ge=0, description="Row limit the preview will apply")

# Tool implementations
class ListTablesTool(BaseTool):
    name: str = "list_tables"
    description: str = "Lists all tables in the PostgreSQL database"
    args_schema: type[ListTablesInput] = ListTablesInput

    def __init__(self, db_manager: DatabaseManager):
        super().__init__()
        self._db_manager = db_manager

    def _run(self) -> Dict[str, Any]:
        return {'tables': self._db_manager.list_tables()}

class ListColumnsTool(BaseTool):
    name: str = "list_columns"
    description: str = "Lists columns and their data types for a given table"
    args_schema: type[ListColumnsInput] = ListColumnsInput

    def __init__(self, db_manager: DatabaseManager):
        super().__init__()
        self._db_manager = db_manager

    def _run(self, table: str) -> Dict[str, Any]:
        return {'columns': self._db_manager.list_columns(table)}

class RunQueryTool(BaseTool):
    name: str = "run_query"
    description: str = "Executes a SQL query and returns sample results"
    args_schema: type[RunQueryInput] = RunQueryInput

    def __init__(self, db_manager: DatabaseManager):
        super().__init__()
        self._db_manager = db_manager

    def _run(self, sql: str, limit: int = 5) -> Dict[str, Any]:
        rows = self._db_manager.run_query(sql, limit)
        logger.info(f"Query returned {len(rows)} rows (limit {limit})")
        return {'rows': rows}

class SaveKPITool(BaseTool):
    name: str = "save_kpi"
    description: str = "Saves a KPI definition to the database"
    args_schema: type[SaveKPIInput] = SaveKPIInput

    def __init__(self, db_manager: DatabaseManager):
        super().__init__()
        self._db_manager = db_manager

    def _run(self, name: str, formula: str, description: Optional[str] = None,
             table: Optional[str] = None, columns: Optional[List[str]] = None) -> Dict[str, Any]:
        self._db_manager.insert_kpi(
            name=name,
            formula=formula,
            description=description,
            table_name=table,
            columns=columns
        )
        return {'success': True, 'message': f"KPI '{name}' saved successfully"}

class FetchKPIsTool(BaseTool):
    name: str = "fetch_kpis"
    description: str = "Fetches all KPIs from the database"
    args_schema: type[FetchKPIsInput] = FetchKPIsInput

    def __init__(self, db_manager: DatabaseManager):
        super().__init__()
        self._db_manager = db_manager

    def _run(self) -> Dict[str, Any]:
        kpis = [
            {
                'name': kpi['name'],
                'description': kpi.get('description'),
                'formula': kpi['formula'],
                'table_name': kpi.get('table_name'),
                'columns': kpi.get('columns')
            }
            for kpi in self._db_manager.fetch_kpis()
        ]
        return {'kpis': kpis}

class SaveInsightTool(BaseTool):
    name: str = "save_insight"
    description: str = "Saves an insight definition to the database"
    args_schema: type[SaveInsightInput] = SaveInsightInput

    def __init__(self, db_manager: DatabaseManager):
        super().__init__()
        self._db_manager = db_manager

    def _run(self, name: str, formula: str, description: Optional[str] = None,
             kpi_name: Optional[str] = None, schedule: Optional[str] = None,
             exec_time: Optional[str] = None, alert_high: Optional[float] = None,
             alert_low: Optional[float] = None) -> Dict[str, Any]:
        self._db_manager.insert_insight(
            name=name,
            formula=formula,
            description=description,
            kpi_name=kpi_name,
            schedule=schedule,
            exec_time=exec_time,
            alert_high=alert_high,
            alert_low=alert_low
        )
        return {'success': True, 'message': f"Insight '{name}' saved successfully"}

class GenerateSQLTool(BaseTool):
    name: str = "generate_sql"
    description: str = "Generates a PostgreSQL query for a KPI intent over the selected tables and columns"
    args_schema: type[GenerateSQLInput] = GenerateSQLInput

    def __init__(self, llm_manager: LLMManager):
        super().__init__()
        self._llm_manager = llm_manager

    def _run(self, intent: str, tables: List[str], columns: Optional[List[str]] = None,
             limit: int = 10) -> Dict[str, Any]:
        sql = self._llm_manager.generate_sql_query(intent, tables, columns or [], limit)
        return {'sql': sql}

def create_tools(db_manager: DatabaseManager, llm_manager: LLMManager) -> List[BaseTool]:
    """Create all tools for the KPI studio"""
    return [
        ListTablesTool(db_manager),
        ListColumnsTool(db_manager),
        RunQueryTool(db_manager),
        SaveKPITool(db_manager),
        FetchKPIsTool(db_manager),
        SaveInsightTool(db_manager),
        GenerateSQLTool(llm_manager)
    ]

def tools_by_name(tools: List[BaseTool]) -> Dict[str, BaseTool]:
    """Index tools by their name"""
    return {tool.name: tool for tool in tools}
