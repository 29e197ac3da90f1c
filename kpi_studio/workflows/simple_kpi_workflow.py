"""
Simple KPI creation workflow: one table, chosen by name.
"""

import logging
from typing import Dict, List, Any
from langchain.tools import BaseTool

from kpi_studio.config.config import Config
from kpi_studio.config.state import (
    SimpleKPIWorkflowState,
    ColumnInfo,
    SelectTableSuspend,
    SelectTableResume,
    DefineKPISuspend,
    DefineKPIResume,
    SaveKPISuspend,
    ConfirmKPIResume,
    SimpleKPIWorkflowOutput,
)
from kpi_studio.workflows.base import BaseWorkflow, WorkflowStep

logger = logging.getLogger(__name__)


class SimpleKPIWorkflow(BaseWorkflow):
    workflow_id = "simple-kpi-workflow"
    state_schema = SimpleKPIWorkflowState

    def __init__(self, tools: Dict[str, BaseTool], checkpointer=None):
        self.tools = tools
        super().__init__(checkpointer)

    def _define_steps(self) -> List[WorkflowStep]:
        return [
            WorkflowStep("get_tables", "Fetch available database tables", self._get_tables_node),
            WorkflowStep("select_table", "User selects a table for the KPI",
                         self._select_table_node, SelectTableResume, SelectTableSuspend),
            WorkflowStep("get_columns", "Fetch columns for the selected table", self._get_columns_node),
            WorkflowStep("define_kpi", "User defines KPI details and SQL",
                         self._define_kpi_node, DefineKPIResume, DefineKPISuspend),
            WorkflowStep("preview_kpi", "Preview KPI results", self._preview_kpi_node),
            WorkflowStep("save_kpi", "Save the KPI to the database",
                         self._save_kpi_node, ConfirmKPIResume, SaveKPISuspend),
        ]

    def _get_tables_node(self, state: SimpleKPIWorkflowState) -> Dict[str, Any]:
        return {'tables': self.tools["list_tables"].invoke({})['tables']}

    def _select_table_node(self, state: SimpleKPIWorkflowState) -> Dict[str, Any]:
        payload = SelectTableSuspend(
            tables=state.tables,
            message='Select a table by providing the full table name (e.g., public.sales)'
        )
        resume = self.suspend_until("select_table", payload, lambda data: bool(data.table_name))
        return {'table_name': resume.table_name}

    def _get_columns_node(self, state: SimpleKPIWorkflowState) -> Dict[str, Any]:
        columns = self.tools["list_columns"].invoke({'table': state.table_name})['columns']
        if not columns:
            logger.warning(f"Table {state.table_name} has no columns or does not exist")
        return {'columns': columns}

    def _define_kpi_node(self, state: SimpleKPIWorkflowState) -> Dict[str, Any]:
        payload = DefineKPISuspend(
            table_name=state.table_name,
            columns=[ColumnInfo(**column) for column in state.columns],
            message='Provide: kpiName, kpiDescription, useAI (true/false), and either sqlIntent OR manualSQL'
        )
        resume = self.suspend_until("define_kpi", payload, lambda data: bool(data.kpi_name))

        if resume.use_ai and resume.sql_intent:
            column_names = [f"{state.table_name}.{column['column_name']}" for column in state.columns]
            sql_query = self.tools["generate_sql"].invoke({
                'intent': resume.sql_intent,
                'tables': [state.table_name],
                'columns': column_names,
                'limit': Config.SQL_GENERATION_LIMIT,
            })['sql']
        elif not resume.use_ai and resume.manual_sql:
            sql_query = resume.manual_sql
        else:
            raise ValueError('Provide either sqlIntent (with useAI=true) or manualSQL (with useAI=false)')

        return {
            'kpi_name': resume.kpi_name,
            'kpi_description': resume.kpi_description,
            'sql_query': sql_query,
        }

    def _preview_kpi_node(self, state: SimpleKPIWorkflowState) -> Dict[str, Any]:
        result = self.tools["run_query"].invoke({'sql': state.sql_query, 'limit': Config.PREVIEW_LIMIT})
        return {'preview': result['rows']}

    def _save_kpi_node(self, state: SimpleKPIWorkflowState) -> Dict[str, Any]:
        payload = SaveKPISuspend(
            sql_query=state.sql_query,
            preview=state.preview,
            message='Review the SQL and preview. Set confirmed=true to save, or provide editedSQL to modify'
        )
        resume = self.suspend_until("save_kpi", payload, lambda data: data.confirmed)

        result = self.tools["save_kpi"].invoke({
            'name': state.kpi_name,
            'description': state.kpi_description,
            'formula': resume.edited_sql or state.sql_query,
            'table': state.table_name,
        })

        output = SimpleKPIWorkflowOutput(
            kpi_name=state.kpi_name,
            success=result['success'],
            message=result['message']
        )
        return {'output': output.model_dump(by_alias=True)}
