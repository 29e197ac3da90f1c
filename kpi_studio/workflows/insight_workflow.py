"""
Insight generation workflow.

fetch_kpis -> select_kpi* -> execute_kpi_query -> generate_insight -> confirm_save_insight*
"""

import json
import logging
from typing import Dict, List, Any
from langchain.tools import BaseTool

from kpi_studio.agents.prompts import INSIGHT_GENERATION_PROMPT
from kpi_studio.config.config import Config
from kpi_studio.config.state import (
    InsightWorkflowState,
    KPIOption,
    SelectKPISuspend,
    SelectKPIResume,
    ConfirmInsightSuspend,
    ConfirmInsightResume,
    InsightWorkflowOutput,
)
from kpi_studio.workflows.base import BaseWorkflow, WorkflowStep

logger = logging.getLogger(__name__)


class InsightWorkflow(BaseWorkflow):
    """Turn the data behind a saved KPI into a narrative insight"""

    workflow_id = "insight-generation-workflow"
    state_schema = InsightWorkflowState

    def __init__(self, tools: Dict[str, BaseTool], insight_agent, checkpointer=None):
        self.tools = tools
        self.insight_agent = insight_agent
        super().__init__(checkpointer)

    def _define_steps(self) -> List[WorkflowStep]:
        return [
            WorkflowStep("fetch_kpis", "Fetch all available KPIs", self._fetch_kpis_node),
            WorkflowStep("select_kpi", "User selects a KPI and names the insight",
                         self._select_kpi_node, SelectKPIResume, SelectKPISuspend),
            WorkflowStep("execute_kpi_query", "Run the KPI formula to get data", self._execute_kpi_query_node),
            WorkflowStep("generate_insight", "Ask the insight agent to analyze the data", self._generate_insight_node),
            WorkflowStep("confirm_save_insight", "User confirms and saves the insight",
                         self._confirm_save_insight_node, ConfirmInsightResume, ConfirmInsightSuspend),
        ]

    def _fetch_kpis_node(self, state: InsightWorkflowState) -> Dict[str, Any]:
        kpis = self.tools["fetch_kpis"].invoke({})['kpis']
        logger.info(f"Found {len(kpis)} KPIs")
        return {'kpis': kpis}

    def _select_kpi_node(self, state: InsightWorkflowState) -> Dict[str, Any]:
        payload = SelectKPISuspend(
            available_kpis=[KPIOption(name=kpi['name']) for kpi in state.kpis],
            message='Select a KPI and provide insight name and description'
        )
        resume = self.suspend_until(
            "select_kpi", payload,
            lambda data: bool(data.kpi_name) and bool(data.insight_name)
        )

        kpi = next((item for item in state.kpis if item['name'] == resume.kpi_name), None)
        if kpi is None:
            raise ValueError(f"KPI '{resume.kpi_name}' not found")

        return {
            'kpi_name': kpi['name'],
            'kpi_description': kpi.get('description'),
            'kpi_formula': kpi['formula'],
            'insight_name': resume.insight_name,
            'insight_description': resume.insight_description,
        }

    def _execute_kpi_query_node(self, state: InsightWorkflowState) -> Dict[str, Any]:
        result = self.tools["run_query"].invoke({'sql': state.kpi_formula, 'limit': Config.INSIGHT_QUERY_LIMIT})
        return {'kpi_data': result['rows']}

    def _generate_insight_node(self, state: InsightWorkflowState) -> Dict[str, Any]:
        prompt = INSIGHT_GENERATION_PROMPT.format(
            kpi_name=state.kpi_name,
            kpi_description=state.kpi_description or "",
            kpi_formula=state.kpi_formula,
            insight_description=state.insight_description or "",
            kpi_data=json.dumps(state.kpi_data[:Config.INSIGHT_SAMPLE_ROWS], indent=2, default=str)
        )
        response = self.insight_agent.generate(prompt, thread_id=f"insight-{state.run_id}")
        if not response.text:
            raise ValueError(f"Insight agent returned no text for KPI '{state.kpi_name}'")
        return {'insight_text': response.text}

    def _confirm_save_insight_node(self, state: InsightWorkflowState) -> Dict[str, Any]:
        payload = ConfirmInsightSuspend(
            insight_text=state.insight_text,
            message='Review the generated insight. Confirm to save or provide edited version.'
        )
        resume = self.suspend_until("confirm_save_insight", payload, lambda data: data.confirmed)

        result = self.tools["save_insight"].invoke({
            'name': state.insight_name,
            'description': state.insight_description,
            'kpi_name': state.kpi_name,
            'formula': resume.edited_insight or state.insight_text,
            'schedule': resume.schedule,
            'exec_time': resume.exec_time,
            'alert_high': resume.alert_high,
            'alert_low': resume.alert_low,
        })

        output = InsightWorkflowOutput(insight_name=state.insight_name, success=result['success'])
        return {'output': output.model_dump(by_alias=True)}
