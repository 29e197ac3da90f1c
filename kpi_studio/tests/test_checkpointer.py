"""
Checkpointer selection tests
"""

import pytest
from unittest.mock import Mock, patch
from langgraph.checkpoint.memory import MemorySaver

from kpi_studio.config.config import Config
from kpi_studio.workflows import checkpointer as checkpoints
from kpi_studio.workflows.checkpointer import close_checkpointer, create_checkpointer, to_libpq_url


@pytest.mark.parametrize("url, expected", [
    ("postgresql+psycopg2://u:p@db:5432/kpi", "postgresql://u:p@db:5432/kpi"),
    ("postgresql+psycopg://u:p@db/kpi", "postgresql://u:p@db/kpi"),
    ("postgresql://u:p@db/kpi", "postgresql://u:p@db/kpi"),
])
def test_driver_suffix_is_dropped(url, expected):
    assert to_libpq_url(url) == expected


def test_memory_backend():
    assert isinstance(create_checkpointer("memory"), MemorySaver)


def test_postgres_backend_uses_the_application_database():
    with patch.object(checkpoints, "Connection") as connection, \
            patch.object(checkpoints, "PostgresSaver") as saver_class, \
            patch.object(Config, "CHECKPOINT_BACKEND", "postgres"), \
            patch.object(Config, "CHECKPOINT_DATABASE_URL", None), \
            patch.object(Config, "DATABASE_URL", "postgresql+psycopg2://u:p@db:5432/kpi"):
        saver = create_checkpointer()

    assert connection.connect.call_args.args[0] == "postgresql://u:p@db:5432/kpi"
    assert connection.connect.call_args.kwargs['autocommit'] is True
    saver_class.assert_called_once_with(connection.connect.return_value)
    saver.setup.assert_called_once()


def test_postgres_backend_can_use_its_own_database():
    with patch.object(checkpoints, "Connection") as connection, \
            patch.object(checkpoints, "PostgresSaver"), \
            patch.object(Config, "CHECKPOINT_DATABASE_URL", "postgresql://u:p@checkpoints/runs"):
        create_checkpointer("postgres")

    assert connection.connect.call_args.args[0] == "postgresql://u:p@checkpoints/runs"


def test_postgres_connection_errors_propagate():
    with patch.object(checkpoints, "Connection") as connection:
        connection.connect.side_effect = RuntimeError("connection refused")
        with pytest.raises(RuntimeError, match="connection refused"):
            create_checkpointer("postgres", "postgresql://u:p@db/kpi")


def test_unknown_backend_is_rejected():
    with pytest.raises(ValueError, match="Unknown checkpoint backend 'redis'"):
        create_checkpointer("redis")


def test_close_checkpointer():
    saver = Mock()
    close_checkpointer(saver)
    saver.conn.close.assert_called_once()

    # in-memory savers hold no connection
    close_checkpointer(MemorySaver())
