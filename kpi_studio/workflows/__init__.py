"""
Human-in-the-loop workflows for KPI and insight authoring
"""

from kpi_studio.workflows.base import BaseWorkflow, WorkflowError, WorkflowStep
from kpi_studio.workflows.kpi_workflow import KPIWorkflow
from kpi_studio.workflows.simple_kpi_workflow import SimpleKPIWorkflow
from kpi_studio.workflows.insight_workflow import InsightWorkflow

__all__ = [
    "BaseWorkflow",
    "WorkflowError",
    "WorkflowStep",
    "KPIWorkflow",
    "SimpleKPIWorkflow",
    "InsightWorkflow",
]
