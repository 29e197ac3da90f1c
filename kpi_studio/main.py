#!/usr/bin/env python3
"""
KPI Studio demo

Sends one canned message to one of the conversational agents and prints the
reply:

    kpi-studio kpi        # KPI agent lists the tables to start a KPI
    kpi-studio insight    # Insight agent lists the saved KPIs
    kpi-studio sql        # SQL query agent lists the tables
"""

import logging
import sys
from typing import List, Optional
from kpi_studio.app import KPIStudio
from kpi_studio.config.config import Config, configure_logging

logger = logging.getLogger(__name__)

DEMOS = {
    'kpi': ("KPI Agent Demo", "kpi_agent",
            "I want to create a KPI. First, show me the available tables."),
    'insight': ("Insight Agent Demo", "insight_agent",
                "Show me all available KPIs so I can create an insight."),
    'sql': ("SQL Query Agent Demo", "sql_query_agent",
            "List all tables in the database."),
}


def print_separator(title: str):
    """Print a formatted separator with title"""
    print(f"=== {title} ===\n")


def run_demo(demo_type: str, studio: Optional[KPIStudio] = None):
    """Run one agent demo"""
    title, agent_key, message = DEMOS[demo_type]
    print_separator(title)

    owns_studio = studio is None
    studio = studio or KPIStudio()
    try:
        agent = studio.get_agent(agent_key)
        result = agent.generate(message, thread_id=f"demo-{demo_type}")
        print(f"Agent response: {result.text}")
        if result.tool_calls:
            logger.info(f"Tools used: {', '.join(result.tool_calls)}")
    finally:
        if owns_studio:
            studio.close()

    print("\n\n=== Demo Complete ===")


def print_usage():
    print("Usage: kpi-studio [kpi|insight|sql]")
    print("Example: kpi-studio kpi")


def main(argv: Optional[List[str]] = None):
    """Main entry point"""
    argv = sys.argv[1:] if argv is None else argv
    demo_type = argv[0] if argv else 'kpi'

    if demo_type not in DEMOS:
        print_usage()
        return

    configure_logging()
    try:
        Config.validate()
        run_demo(demo_type)
    except Exception as e:
        print(f"Error running demo: {e}")
        logger.error(f"Error running demo: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
