"""
KPI creation workflow (index-based).

list_tables -> select_tables* -> list_columns -> select_columns_details*
-> generate_sql -> preview_results -> confirm_save*

Steps marked * pause for user input.
"""

import logging
from typing import Dict, List, Any
from langchain.tools import BaseTool

from kpi_studio.config.config import Config
from kpi_studio.config.state import (
    KPIWorkflowState,
    TableOption,
    SelectTablesSuspend,
    SelectTablesResume,
    ColumnOption,
    SelectColumnsSuspend,
    SelectColumnsResume,
    ConfirmKPISuspend,
    ConfirmKPIResume,
    KPIWorkflowOutput,
)
from kpi_studio.workflows.base import BaseWorkflow, WorkflowStep

logger = logging.getLogger(__name__)


def resolve_indexes(indexes: List[int], size: int, label: str) -> List[int]:
    """Check every index against ``[0, size)`` and report all offenders at once"""
    if not indexes:
        raise ValueError(f"No {label} indexes selected")
    invalid = [index for index in indexes if index < 0 or index >= size]
    if invalid:
        raise ValueError(
            f"Invalid {label} indexes: {', '.join(str(index) for index in invalid)}. "
            f"Must be between 0 and {size - 1}"
        )
    return indexes


class KPIWorkflow(BaseWorkflow):
    """Create a KPI by picking tables and columns by index"""

    workflow_id = "kpi-creation-workflow"
    state_schema = KPIWorkflowState

    def __init__(self, tools: Dict[str, BaseTool], checkpointer=None):
        self.tools = tools
        super().__init__(checkpointer)

    def _define_steps(self) -> List[WorkflowStep]:
        return [
            WorkflowStep("list_tables", "List all available database tables", self._list_tables_node),
            WorkflowStep("select_tables", "User selects which tables to use for the KPI by index",
                         self._select_tables_node, SelectTablesResume, SelectTablesSuspend),
            WorkflowStep("list_columns", "List columns for the selected tables", self._list_columns_node),
            WorkflowStep("select_columns_details", "User selects columns by index and provides KPI details",
                         self._select_columns_details_node, SelectColumnsResume, SelectColumnsSuspend),
            WorkflowStep("generate_sql", "Generate SQL with AI or use the manual SQL", self._generate_sql_node),
            WorkflowStep("preview_results", "Execute the SQL to show a preview", self._preview_results_node),
            WorkflowStep("confirm_save", "User confirms and saves the KPI",
                          self._confirm_save_node, ConfirmKPIResume, ConfirmKPISuspend),
        ]

    def _list_tables_node(self, state: KPIWorkflowState) -> Dict[str, Any]:
        result = self.tools["list_tables"].invoke({})
        logger.info(f"Found {len(result['tables'])} tables")
        return {'tables': result['tables']}

    def _select_tables_node(self, state: KPIWorkflowState) -> Dict[str, Any]:
        payload = SelectTablesSuspend(
            available_tables=[TableOption(index=index, name=name) for index, name in enumerate(state.tables)],
            message='Select tables by providing their index numbers. Example: {"selectedTableIndexes": [0]}'
        )
        resume = self.suspend_until(
            "select_tables", payload,
            lambda data: data.selected_table_indexes is not None
        )

        indexes = resolve_indexes(resume.selected_table_indexes, len(state.tables), "table")
        return {'selected_tables': [state.tables[index] for index in indexes]}

    def _list_columns_node(self, state: KPIWorkflowState) -> Dict[str, Any]:
        columns = {}
        for table in state.selected_tables:
            columns[table] = self.tools["list_columns"].invoke({'table': table})['columns']
        return {'columns': columns}

    def _select_columns_details_node(self, state: KPIWorkflowState) -> Dict[str, Any]:
        available_columns = {
            table: [
                ColumnOption(index=index, column_name=column['column_name'], data_type=column['data_type'])
                for index, column in enumerate(state.columns.get(table, []))
            ]
            for table in state.selected_tables
        }
        payload = SelectColumnsSuspend(
            available_columns=available_columns,
            message=(
                'Provide: 1) selectedColumnsByTable (e.g., {"public.sales": [0, 1]}), 2) kpiName, '
                '3) kpiDescription, 4) useAIGeneration (true/false), 5) sqlIntent OR manualSQL'
            )
        )
        resume = self.suspend_until(
            "select_columns_details", payload,
            lambda data: data.selected_columns_by_table is not None and bool(data.kpi_name)
        )

        unknown_tables = [table for table in resume.selected_columns_by_table if table not in state.columns]
        if unknown_tables:
            raise ValueError(f"Tables not among the selected tables: {', '.join(unknown_tables)}")

        invalid = []
        selected_columns = []
        for table, indexes in resume.selected_columns_by_table.items():
            table_columns = state.columns[table]
            for index in indexes:
                if index < 0 or index >= len(table_columns):
                    invalid.append(f"{table}[{index}]")
                else:
                    selected_columns.append(f"{table}.{table_columns[index]['column_name']}")

        if invalid:
            raise ValueError(
                f"Invalid column indexes: {', '.join(invalid)}. "
                f"Each index must be between 0 and the table's column count minus one"
            )
        if not selected_columns:
            raise ValueError("No column indexes selected")

        return {
            'selected_columns': selected_columns,
            'kpi_name': resume.kpi_name,
            'kpi_description': resume.kpi_description,
            'use_ai_generation': resume.use_ai_generation,
            'sql_intent': resume.sql_intent,
            'manual_sql': resume.manual_sql,
        }

    def _generate_sql_node(self, state: KPIWorkflowState) -> Dict[str, Any]:
        if state.use_ai_generation and state.sql_intent:
            result = self.tools["generate_sql"].invoke({
                'intent': state.sql_intent,
                'tables': state.selected_tables,
                'columns': state.selected_columns,
                'limit': Config.SQL_GENERATION_LIMIT,
            })
            sql_query = result['sql']
        elif state.manual_sql:
            sql_query = state.manual_sql
        else:
            raise ValueError("Either AI generation with intent or manual SQL must be provided")

        return {'sql_query': sql_query}

    def _preview_results_node(self, state: KPIWorkflowState) -> Dict[str, Any]:
        result = self.tools["run_query"].invoke({'sql': state.sql_query, 'limit': Config.PREVIEW_LIMIT})
        return {'preview_rows': result['rows']}

    def _confirm_save_node(self, state: KPIWorkflowState) -> Dict[str, Any]:
        payload = ConfirmKPISuspend(
            sql_query=state.sql_query,
            preview_results=state.preview_rows,
            message='Review the SQL query and results. Confirm to save or provide edited SQL.'
        )
        resume = self.suspend_until("confirm_save", payload, lambda data: data.confirmed)

        result = self.tools["save_kpi"].invoke({
            'name': state.kpi_name,
            'description': state.kpi_description,
            'formula': resume.edited_sql or state.sql_query,
            'table': ', '.join(state.selected_tables),
            'columns': state.selected_columns,
        })

        output = KPIWorkflowOutput(kpi_name=state.kpi_name, success=result['success'])
        return {'output': output.model_dump(by_alias=True)}
