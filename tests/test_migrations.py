"""Tests for the Alembic migration environment."""

import logging

from sqlalchemy import create_engine, inspect

from unfiltered_voice.db.session import Base
from unfiltered_voice.scripts.migrate import run_upgrade_head


def test_upgrade_head_builds_every_model_table(tmp_path, monkeypatch) -> None:
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setenv("ALEMBIC_URL", url)

    run_upgrade_head()

    engine = create_engine(url)
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    assert tables == set(Base.metadata.tables) | {"alembic_version"}


def test_upgrade_keeps_application_loggers_enabled(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("ALEMBIC_URL", f"sqlite:///{tmp_path / 'logging.db'}")
    app_logger = logging.getLogger("unfiltered_voice.services.change_requests")

    run_upgrade_head()

    assert not app_logger.disabled
