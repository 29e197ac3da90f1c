"""
Conversational agents for KPI and insight authoring.

Each agent is a system prompt plus a subset of the database tools. Turn taking
and tool selection are delegated to the hosted model through LangGraph's
prebuilt ReAct agent; conversation history is kept by a checkpointer keyed by
thread id and only the most recent messages are sent to the model.
"""

import logging
from typing import Dict, List, Any, Optional
from pydantic import BaseModel, Field
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, trim_messages
from langchain.tools import BaseTool
from langgraph.checkpoint.memory import MemorySaver
from langgraph.prebuilt import create_react_agent

from kpi_studio.agents.prompts import (
    KPI_AGENT_DESCRIPTION,
    KPI_AGENT_INSTRUCTIONS,
    INSIGHT_AGENT_DESCRIPTION,
    INSIGHT_AGENT_INSTRUCTIONS,
    SQL_QUERY_AGENT_DESCRIPTION,
    SQL_QUERY_AGENT_INSTRUCTIONS,
)
from kpi_studio.config.config import Config
from kpi_studio.tools.llm_manager import LLMManager
from kpi_studio.tools.tool_definitions import tools_by_name

logger = logging.getLogger(__name__)


class AgentSpec(BaseModel):
    key: str
    name: str
    description: str
    instructions: str
    tool_names: List[str]


AGENT_SPECS = [
    AgentSpec(
        key="kpi_agent",
        name="KPI Agent",
        description=KPI_AGENT_DESCRIPTION,
        instructions=KPI_AGENT_INSTRUCTIONS,
        tool_names=["list_tables", "list_columns", "run_query", "generate_sql", "save_kpi"],
    ),
    AgentSpec(
        key="insight_agent",
        name="Insight Agent",
        description=INSIGHT_AGENT_DESCRIPTION,
        instructions=INSIGHT_AGENT_INSTRUCTIONS,
        tool_names=["fetch_kpis", "run_query", "generate_sql", "save_insight"],
    ),
    AgentSpec(
        key="sql_query_agent",
        name="SQL Query Agent",
        description=SQL_QUERY_AGENT_DESCRIPTION,
        instructions=SQL_QUERY_AGENT_INSTRUCTIONS,
        tool_names=["list_tables", "list_columns", "run_query", "generate_sql"],
    ),
]


class AgentResponse(BaseModel):
    """Result of one agent turn"""
    text: str = Field(description="Final text produced by the model")
    tool_calls: List[str] = Field(default_factory=list, description="Tools the model invoked during the turn")
    messages: List[Any] = Field(default_factory=list, description="Messages produced during the turn")


def message_text(message: BaseMessage) -> str:
    """Plain text of a message whose content may be a list of parts"""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


def _last_human_index(messages: List[BaseMessage]) -> int:
    for index in range(len(messages) - 1, -1, -1):
        if isinstance(messages[index], HumanMessage):
            return index
    return 0


class ConversationalAgent:
    """A system prompt and tool bindings handed to a hosted chat model"""

    def __init__(self, name: str, description: str, instructions: str, tools: List[BaseTool],
                 model: BaseChatModel, checkpointer=None, memory_window: Optional[int] = None):
        self.name = name
        self.description = description
        self.instructions = instructions
        self.tools = tools
        self.checkpointer = checkpointer or MemorySaver()
        self.memory_window = memory_window or Config.MEMORY_LAST_MESSAGES

        self.graph = create_react_agent(
            model=model,
            tools=tools,
            prompt=self._build_prompt,
            checkpointer=self.checkpointer,
            name=name.lower().replace(" ", "_")
        )

    def _build_prompt(self, state) -> List[BaseMessage]:
        """System prompt, the last messages of earlier turns, then the whole current turn.

        Only recalled history is windowed; the turn in progress (the latest
        human message and the tool calls that followed it) is always sent.
        """
        messages = state["messages"]
        turn_start = _last_human_index(messages)
        history = trim_messages(
            messages[:turn_start],
            strategy="last",
            token_counter=len,
            max_tokens=self.memory_window,
            start_on="human",
            include_system=False
        ) if turn_start else []
        return [SystemMessage(content=self.instructions)] + list(history) + list(messages[turn_start:])

    def generate(self, message: str, thread_id: str = "default-thread") -> AgentResponse:
        """Run one conversational turn on the given memory thread"""
        logger.info(f"{self.name} generating on thread {thread_id}")
        result = self.graph.invoke(
            {"messages": [HumanMessage(content=message)]},
            config={"configurable": {"thread_id": thread_id}}
        )

        messages = result["messages"]
        turn = messages[_last_human_index(messages) + 1:]

        tool_calls = [
            call["name"]
            for item in turn if isinstance(item, AIMessage)
            for call in item.tool_calls
        ]
        text = message_text(turn[-1]) if turn else ""
        logger.info(f"{self.name} finished turn with {len(tool_calls)} tool calls")
        return AgentResponse(text=text, tool_calls=tool_calls, messages=turn)


def create_agents(tools: List[BaseTool], llm_manager: LLMManager, checkpointer=None,
                  memory_window: Optional[int] = None) -> Dict[str, ConversationalAgent]:
    """Create the KPI, insight and SQL query agents sharing one memory store"""
    available = tools_by_name(tools)
    model = llm_manager.get_chat_model()
    checkpointer = checkpointer or MemorySaver()

    agents = {}
    for spec in AGENT_SPECS:
        agent_tools = [available[name] for name in spec.tool_names]
        agents[spec.key] = ConversationalAgent(
            name=spec.name,
            description=spec.description,
            instructions=spec.instructions,
            tools=agent_tools,
            model=model,
            checkpointer=checkpointer,
            memory_window=memory_window
        )
        logger.info(f"Created {spec.name} with {len(agent_tools)} tools")
    return agents
