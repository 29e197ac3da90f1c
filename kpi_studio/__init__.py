"""
KPI Studio

Define KPIs (named SQL queries) and Insights (narratives written by a language
model from KPI results) over a PostgreSQL database, through conversational
agents and human-in-the-loop LangGraph workflows that pause for user input.
"""

__version__ = "1.0.0"
__author__ = "AI Engineer"
__description__ = "Conversational KPI and insight authoring over PostgreSQL"
