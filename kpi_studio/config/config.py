import os
import sys
import logging
from dotenv import load_dotenv
from typing import Optional

# Load environment variables
load_dotenv()


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Configuration class for the KPI studio"""

    # Database configuration
    DATABASE_URL = os.getenv('DATABASE_URL') or os.getenv('PG_CONNECTION_STRING')
    DB_CONFIG = {
        'host': os.getenv('DB_HOST', '127.0.0.1'),
        'port': os.getenv('DB_PORT', '5432'),
        'database': os.getenv('DB_NAME', 'kpi_studio'),
        'user': os.getenv('DB_USER', 'postgres'),
        'password': os.getenv('DB_PASSWORD', 'postgres')
    }
    DB_POOL_SIZE = int(os.getenv('DB_POOL_SIZE', '5'))
    DB_MAX_OVERFLOW = int(os.getenv('DB_MAX_OVERFLOW', '10'))

    # OpenAI configuration (any OpenAI-compatible endpoint, e.g. OpenRouter)
    OPENAI_API_KEY = os.getenv('OPENAI_API_KEY') or os.getenv('OPENROUTER_API_KEY')
    OPENAI_MODEL = os.getenv('OPENAI_MODEL') or os.getenv('OPENROUTER_MODEL') or 'gpt-4o'
    OPENAI_BASE_URL = os.getenv('OPENAI_BASE_URL')

    # LLM configuration
    TEMPERATURE = float(os.getenv('TEMPERATURE', '0.1'))
    MAX_TOKENS = int(os.getenv('MAX_TOKENS', '1000'))

    # Agent configuration
    MEMORY_LAST_MESSAGES = int(os.getenv('MEMORY_LAST_MESSAGES', '20'))

    # Workflow configuration
    PREVIEW_LIMIT = int(os.getenv('PREVIEW_LIMIT', '5'))
    INSIGHT_QUERY_LIMIT = int(os.getenv('INSIGHT_QUERY_LIMIT', '10'))
    INSIGHT_SAMPLE_ROWS = int(os.getenv('INSIGHT_SAMPLE_ROWS', '5'))
    SQL_GENERATION_LIMIT = int(os.getenv('SQL_GENERATION_LIMIT', '10'))

    # Startup behaviour of the composition root
    FAIL_ON_STARTUP_ERROR = _get_bool('FAIL_ON_STARTUP_ERROR', False)

    # Where workflow runs and agent memory are checkpointed: postgres or memory
    CHECKPOINT_BACKEND = os.getenv('CHECKPOINT_BACKEND', 'postgres')
    CHECKPOINT_DATABASE_URL = os.getenv('CHECKPOINT_DATABASE_URL')

    # Logging configuration
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE = os.getenv('LOG_FILE', 'kpi_studio.log')

    @classmethod
    def get_database_url(cls) -> str:
        """Get SQLAlchemy database URL"""
        if cls.DATABASE_URL:
            return cls.DATABASE_URL
        return f"postgresql://{cls.DB_CONFIG['user']}:{cls.DB_CONFIG['password']}@{cls.DB_CONFIG['host']}:{cls.DB_CONFIG['port']}/{cls.DB_CONFIG['database']}"

    @classmethod
    def get_checkpoint_database_url(cls) -> str:
        """Database holding the checkpoints, the application database unless overridden"""
        return cls.CHECKPOINT_DATABASE_URL or cls.get_database_url()

    @classmethod
    def validate(cls) -> bool:
        """Validate configuration"""
        required_vars = ['OPENAI_API_KEY']
        for var in required_vars:
            if not getattr(cls, var, None):
                raise ValueError(f"Required configuration variable {var} is not set")
        return True


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None):
    """Configure root logging for scripts and the demo entrypoint"""
    handlers = [logging.StreamHandler(sys.stdout)]
    log_file = log_file if log_file is not None else Config.LOG_FILE
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, (level or Config.LOG_LEVEL).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )
