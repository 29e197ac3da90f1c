from typing import Dict, List, Any, Optional
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum


class RunStatus(str, Enum):
    """Lifecycle states of a workflow run"""
    RUNNING = "running"
    SUSPENDED = "suspended"
    COMPLETED = "completed"
    FAILED = "failed"


class WorkflowRun(BaseModel):
    """Externally visible status of one workflow run"""

    run_id: str = Field(description="Run identifier, also used as the checkpointer thread id")
    workflow_id: str = Field(description="Identifier of the workflow definition")
    status: RunStatus = Field(default=RunStatus.RUNNING, description="Current lifecycle state")
    current_step: Optional[str] = Field(default=None, description="Step that is paused or that failed")
    suspend_payload: Optional[Dict[str, Any]] = Field(default=None, description="Data shown to the external actor while paused")
    output: Optional[Dict[str, Any]] = Field(default=None, description="Final workflow output once completed")
    error: Optional[str] = Field(default=None, description="Error message if the run failed")

    def mark_suspended(self, step: str, payload: Dict[str, Any]):
        self.status = RunStatus.SUSPENDED
        self.current_step = step
        self.suspend_payload = payload

    def mark_completed(self, output: Optional[Dict[str, Any]]):
        self.status = RunStatus.COMPLETED
        self.current_step = None
        self.suspend_payload = None
        self.output = output

    def mark_failed(self, step: Optional[str], error: str):
        self.status = RunStatus.FAILED
        self.current_step = step
        self.suspend_payload = None
        self.error = error

    def is_suspended(self) -> bool:
        return self.status == RunStatus.SUSPENDED

    def is_complete(self) -> bool:
        return self.status == RunStatus.COMPLETED

    def is_failed(self) -> bool:
        return self.status == RunStatus.FAILED


class Payload(BaseModel):
    """Suspend/resume payloads use camelCase keys on the wire"""
    model_config = ConfigDict(populate_by_name=True)


class ColumnInfo(Payload):
    column_name: str
    data_type: str


# Workflow state shared by every pipeline

class WorkflowState(BaseModel):
    run_id: Optional[str] = Field(default=None, description="Run identifier")
    workflow_id: Optional[str] = Field(default=None, description="Workflow that owns the run")
    start: bool = Field(default=True, description="Trigger flag")
    output: Optional[Dict[str, Any]] = Field(default=None, description="Output of the final step")


# KPI workflow (index-based)

class KPIWorkflowState(WorkflowState):
    tables: List[str] = Field(default_factory=list)
    selected_tables: List[str] = Field(default_factory=list)
    columns: Dict[str, List[Dict[str, Any]]] = Field(default_factory=dict)
    selected_columns: List[str] = Field(default_factory=list)
    kpi_name: Optional[str] = None
    kpi_description: Optional[str] = None
    use_ai_generation: bool = False
    sql_intent: Optional[str] = None
    manual_sql: Optional[str] = None
    sql_query: Optional[str] = None
    preview_rows: List[Dict[str, Any]] = Field(default_factory=list)


class TableOption(Payload):
    index: int
    name: str


class SelectTablesSuspend(Payload):
    available_tables: List[TableOption] = Field(alias="availableTables")
    message: str


class SelectTablesResume(Payload):
    selected_table_indexes: Optional[List[int]] = Field(
        default=None, alias="selectedTableIndexes",
        description="Array of table indexes to select (e.g., [0, 1])"
    )


class ColumnOption(Payload):
    index: int
    column_name: str
    data_type: str


class SelectColumnsSuspend(Payload):
    available_columns: Dict[str, List[ColumnOption]] = Field(alias="availableColumns")
    message: str


class SelectColumnsResume(Payload):
    selected_columns_by_table: Optional[Dict[str, List[int]]] = Field(
        default=None, alias="selectedColumnsByTable",
        description="Table names as keys and arrays of column indexes as values"
    )
    kpi_name: Optional[str] = Field(default=None, alias="kpiName", description="Name for your KPI")
    kpi_description: Optional[str] = Field(default=None, alias="kpiDescription", description="What this KPI measures")
    use_ai_generation: bool = Field(default=False, alias="useAIGeneration", description="True to let the model write the SQL")
    sql_intent: Optional[str] = Field(default=None, alias="sqlIntent", description="What to calculate, when using AI")
    manual_sql: Optional[str] = Field(default=None, alias="manualSQL", description="Complete SQL query, when not using AI")


class ConfirmKPISuspend(Payload):
    sql_query: str = Field(alias="sqlQuery")
    preview_results: List[Dict[str, Any]] = Field(alias="previewResults")
    message: str


class ConfirmKPIResume(Payload):
    confirmed: bool = Field(default=False, description="Set to true to save the KPI")
    edited_sql: Optional[str] = Field(default=None, alias="editedSQL", description="Replacement SQL to save instead")


class KPIWorkflowOutput(Payload):
    kpi_name: str = Field(alias="kpiName")
    success: bool


# Simple KPI workflow (name-based)

class SimpleKPIWorkflowState(WorkflowState):
    tables: List[str] = Field(default_factory=list)
    table_name: Optional[str] = None
    columns: List[Dict[str, Any]] = Field(default_factory=list)
    kpi_name: Optional[str] = None
    kpi_description: Optional[str] = None
    sql_query: Optional[str] = None
    preview: List[Dict[str, Any]] = Field(default_factory=list)


class SelectTableSuspend(Payload):
    tables: List[str]
    message: str


class SelectTableResume(Payload):
    table_name: Optional[str] = Field(
        default=None, alias="tableName",
        description="The full table name (e.g., public.sales)"
    )


class DefineKPISuspend(Payload):
    table_name: str = Field(alias="tableName")
    columns: List[ColumnInfo]
    message: str


class DefineKPIResume(Payload):
    kpi_name: Optional[str] = Field(default=None, alias="kpiName")
    kpi_description: Optional[str] = Field(default=None, alias="kpiDescription")
    use_ai: bool = Field(default=False, alias="useAI", description="true = generate SQL, false = manual SQL")
    sql_intent: Optional[str] = Field(default=None, alias="sqlIntent")
    manual_sql: Optional[str] = Field(default=None, alias="manualSQL")


class SaveKPISuspend(Payload):
    sql_query: str = Field(alias="sqlQuery")
    preview: List[Dict[str, Any]]
    message: str


class SimpleKPIWorkflowOutput(Payload):
    kpi_name: str = Field(alias="kpiName")
    success: bool
    message: str


# Insight workflow

class InsightWorkflowState(WorkflowState):
    kpis: List[Dict[str, Any]] = Field(default_factory=list)
    kpi_name: Optional[str] = None
    kpi_description: Optional[str] = None
    kpi_formula: Optional[str] = None
    insight_name: Optional[str] = None
    insight_description: Optional[str] = None
    kpi_data: List[Dict[str, Any]] = Field(default_factory=list)
    insight_text: Optional[str] = None


class KPIOption(Payload):
    name: str


class SelectKPISuspend(Payload):
    available_kpis: List[KPIOption] = Field(alias="availableKPIs")
    message: str


class SelectKPIResume(Payload):
    kpi_name: Optional[str] = Field(default=None, alias="kpiName")
    insight_name: Optional[str] = Field(default=None, alias="insightName")
    insight_description: Optional[str] = Field(default=None, alias="insightDescription")


class ConfirmInsightSuspend(Payload):
    insight_text: str = Field(alias="insightText")
    message: str


class ConfirmInsightResume(Payload):
    confirmed: bool = Field(default=False)
    edited_insight: Optional[str] = Field(default=None, alias="editedInsight")
    schedule: Optional[str] = None
    exec_time: Optional[str] = Field(default=None, alias="execTime")
    alert_high: Optional[float] = Field(default=None, alias="alertHigh")
    alert_low: Optional[float] = Field(default=None, alias="alertLow")


class InsightWorkflowOutput(Payload):
    insight_name: str = Field(alias="insightName")
    success: bool
