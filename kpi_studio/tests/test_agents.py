"""
Agent tests with the prebuilt ReAct graph patched out
"""

import pytest
from unittest.mock import Mock, patch
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from kpi_studio.agents.agent_factory import ConversationalAgent, create_agents, message_text
from kpi_studio.tools.tool_definitions import create_tools


@pytest.fixture
def patched_react_agent():
    with patch("kpi_studio.agents.agent_factory.create_react_agent") as factory:
        factory.return_value = Mock()
        yield factory


def build_agent(memory_window=4):
    return ConversationalAgent(
        name="KPI Agent",
        description="KPI authoring",
        instructions="You help create KPIs.",
        tools=[],
        model=Mock(),
        memory_window=memory_window
    )


def test_agent_graph_built_with_prompt_and_checkpointer(patched_react_agent):
    agent = build_agent()
    kwargs = patched_react_agent.call_args.kwargs
    assert kwargs['prompt'] == agent._build_prompt
    assert kwargs['checkpointer'] is agent.checkpointer
    assert kwargs['name'] == "kpi_agent"


def test_prompt_windows_earlier_turns(patched_react_agent):
    agent = build_agent(memory_window=4)
    history = []
    for turn in range(10):
        history.append(HumanMessage(content=f"question {turn}"))
        history.append(AIMessage(content=f"answer {turn}"))

    prompt = agent._build_prompt({"messages": history})

    assert isinstance(prompt[0], SystemMessage)
    assert prompt[0].content == "You help create KPIs."
    assert [message.content for message in prompt[1:]] == [
        "question 7", "answer 7", "question 8", "answer 8", "question 9", "answer 9"
    ]


def test_prompt_keeps_the_whole_current_turn(patched_react_agent):
    agent = build_agent(memory_window=4)
    history = [HumanMessage(content="earlier question"), AIMessage(content="earlier answer")]
    turn = [HumanMessage(content="total sales per region?")]
    for step in range(3):
        turn.append(AIMessage(content="", tool_calls=[
            {"name": "run_query", "args": {"sql": f"SELECT {step}"}, "id": f"call_{step}"}
        ]))
        turn.append(ToolMessage(content=f"rows {step}", tool_call_id=f"call_{step}"))

    prompt = agent._build_prompt({"messages": history + turn})

    assert isinstance(prompt[0], SystemMessage)
    assert prompt[1:] == history + turn


def test_prompt_keeps_a_long_first_turn(patched_react_agent):
    agent = build_agent(memory_window=4)
    turn = [HumanMessage(content="total sales per region?")]
    for step in range(3):
        turn.append(AIMessage(content="", tool_calls=[
            {"name": "list_tables", "args": {}, "id": f"call_{step}"}
        ]))
        turn.append(ToolMessage(content="public.sales", tool_call_id=f"call_{step}"))

    prompt = agent._build_prompt({"messages": turn})

    assert prompt[1:] == turn
    assert isinstance(prompt[1], HumanMessage)


def test_prompt_with_short_history(patched_react_agent):
    agent = build_agent(memory_window=20)
    prompt = agent._build_prompt({"messages": [HumanMessage(content="hi")]})
    assert len(prompt) == 2


def test_generate_reports_text_and_tool_calls_of_the_turn(patched_react_agent):
    agent = build_agent()
    agent.graph.invoke.return_value = {"messages": [
        HumanMessage(content="earlier"),
        AIMessage(content="", tool_calls=[{"name": "fetch_kpis", "args": {}, "id": "call_0"}]),
        ToolMessage(content="{}", tool_call_id="call_0"),
        AIMessage(content="earlier answer"),
        HumanMessage(content="show me the tables"),
        AIMessage(content="", tool_calls=[{"name": "list_tables", "args": {}, "id": "call_1"}]),
        ToolMessage(content='{"tables": ["public.sales"]}', tool_call_id="call_1"),
        AIMessage(content="The database has one table: public.sales"),
    ]}

    response = agent.generate("show me the tables", thread_id="thread-1")

    assert response.text == "The database has one table: public.sales"
    assert response.tool_calls == ["list_tables"]
    config = agent.graph.invoke.call_args.kwargs['config']
    assert config == {"configurable": {"thread_id": "thread-1"}}


def test_message_text_joins_text_parts():
    message = AIMessage(content=[{"type": "text", "text": "Sales "}, {"type": "text", "text": "grew"}])
    assert message_text(message) == "Sales grew"


def test_create_agents_assigns_tool_subsets(patched_react_agent):
    llm_manager = Mock()
    agents = create_agents(create_tools(Mock(), llm_manager), llm_manager)

    assert set(agents) == {"kpi_agent", "insight_agent", "sql_query_agent"}
    assert {tool.name for tool in agents["insight_agent"].tools} == {
        "fetch_kpis", "run_query", "generate_sql", "save_insight"
    }
    assert "save_kpi" not in {tool.name for tool in agents["sql_query_agent"].tools}
    # all agents share one memory store
    assert agents["kpi_agent"].checkpointer is agents["insight_agent"].checkpointer
