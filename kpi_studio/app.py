"""
Composition root: wires the database, the model, the tools, the agents and the
workflows together.
"""

import logging
from typing import Dict, Optional

from kpi_studio.agents.agent_factory import ConversationalAgent, create_agents
from kpi_studio.config.config import Config
from kpi_studio.tools.database_manager import DatabaseManager
from kpi_studio.tools.llm_manager import LLMManager
from kpi_studio.tools.tool_definitions import create_tools, tools_by_name
from kpi_studio.workflows import BaseWorkflow, InsightWorkflow, KPIWorkflow, SimpleKPIWorkflow
from kpi_studio.workflows.checkpointer import close_checkpointer, create_checkpointer

logger = logging.getLogger(__name__)


class KPIStudio:
    """Holds one instance of every component of the application"""

    def __init__(self, db_manager: Optional[DatabaseManager] = None,
                 llm_manager: Optional[LLMManager] = None, checkpointer=None):
        # Initialize core components
        self.db_manager = db_manager or DatabaseManager()
        self.llm_manager = llm_manager or LLMManager()
        # Runs and agent memory survive restarts when the checkpointer is durable
        self._owns_checkpointer = checkpointer is None
        self.checkpointer = checkpointer if checkpointer is not None else create_checkpointer()

        self._initialize_tables()

        # Create tools and agents
        self.tools = create_tools(self.db_manager, self.llm_manager)
        self.agents: Dict[str, ConversationalAgent] = create_agents(
            self.tools, self.llm_manager, checkpointer=self.checkpointer
        )

        # Build the workflows
        available = tools_by_name(self.tools)
        self.workflows: Dict[str, BaseWorkflow] = {
            'kpi_workflow': KPIWorkflow(available, checkpointer=self.checkpointer),
            'insight_workflow': InsightWorkflow(
                available, self.agents['insight_agent'], checkpointer=self.checkpointer
            ),
            'simple_kpi_workflow': SimpleKPIWorkflow(available, checkpointer=self.checkpointer),
        }

        logger.info("KPI studio initialized successfully")

    def _initialize_tables(self):
        """Ensure the kpi and insight tables exist"""
        try:
            self.db_manager.ensure_tables()
        except Exception as e:
            logger.error(f"Failed to initialize database tables: {e}")
            if Config.FAIL_ON_STARTUP_ERROR:
                raise

    def get_agent(self, key: str) -> ConversationalAgent:
        if key not in self.agents:
            raise KeyError(f"Unknown agent '{key}'. Available agents: {', '.join(self.agents)}")
        return self.agents[key]

    def get_workflow(self, key: str) -> BaseWorkflow:
        if key not in self.workflows:
            raise KeyError(f"Unknown workflow '{key}'. Available workflows: {', '.join(self.workflows)}")
        return self.workflows[key]

    def close(self):
        """Clean up resources"""
        self.db_manager.close()
        if self._owns_checkpointer:
            close_checkpointer(self.checkpointer)
        logger.info("KPI studio resources cleaned up")
