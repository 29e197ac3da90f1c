import openai
import re
from langchain_openai import ChatOpenAI
from typing import List, Optional
import logging
from kpi_studio.config.config import Config

logger = logging.getLogger(__name__)

SQL_SYSTEM_PROMPT = "You are an expert SQL developer. Generate only valid PostgreSQL SQL queries."


class LLMManager:
    """Manager for OpenAI-compatible LLM interactions"""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 base_url: Optional[str] = None, client=None):
        self.api_key = api_key or Config.OPENAI_API_KEY
        self.model = model or Config.OPENAI_MODEL
        self.base_url = base_url or Config.OPENAI_BASE_URL
        self.temperature = Config.TEMPERATURE
        self.max_tokens = Config.MAX_TOKENS
        self.client = client or openai.OpenAI(api_key=self.api_key, base_url=self.base_url)

    def generate_sql_query(self, intent: str, tables: List[str], columns: List[str],
                           limit: int = 10) -> str:
        """Generate a PostgreSQL query for a KPI intent over the given tables and columns"""
        prompt = self._create_sql_generation_prompt(intent, tables, columns, limit)

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SQL_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt}
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )
        except Exception as e:
            logger.error(f"Error generating SQL query: {e}")
            raise

        sql_query = self._clean_sql(response.choices[0].message.content or "")
        if not sql_query:
            raise ValueError(f"Model returned no SQL for intent: {intent}")

        logger.info(f"SQL generated for intent '{intent}': {sql_query[:100]}")
        return sql_query

    def _create_sql_generation_prompt(self, intent: str, tables: List[str], columns: List[str],
                                      limit: int) -> str:
        """Create prompt for SQL generation"""
        table_text = "\n".join(f"  - {table}" for table in tables) or "  (none)"
        column_text = "\n".join(f"  - {column}" for column in columns) or "  (any column of the tables above)"

        return f"""Generate a PostgreSQL query that calculates the following KPI.

Intent: {intent}

Tables:
{table_text}

Columns (table.column):
{column_text}

Instructions:
1. Use the exact schema-qualified table and column names listed above
2. Use proper PostgreSQL syntax
3. Do not add a LIMIT clause or a trailing semicolon; the query is previewed with LIMIT {limit} appended automatically
4. Return only the SQL query, no explanations

SQL Query:"""

    @staticmethod
    def _clean_sql(sql_query: str) -> str:
        """Remove markdown fences and a trailing semicolon from model output"""
        sql_query = sql_query.strip()
        sql_query = re.sub(r'^```(?:sql)?\s*', '', sql_query, flags=re.IGNORECASE)
        sql_query = re.sub(r'\s*```$', '', sql_query)
        sql_query = sql_query.strip()
        return re.sub(r';$', '', sql_query).strip()

    def get_chat_model(self) -> ChatOpenAI:
        """Chat model used by the tool-calling agents"""
        return ChatOpenAI(
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            api_key=self.api_key,
            base_url=self.base_url
        )
