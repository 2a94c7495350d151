"""NOTIFY trigger tests — the migration and the listener share one channel.

Learn: The trigger is Postgres-only, so instead of running it the
migration's upgrade() is called with a recording `op` and the rendered
SQL is checked against settings.notify_channel, which is also the
channel main.py hands to NotifyListener.
"""

import importlib.util
from pathlib import Path

import pytest
from pydantic import ValidationError

import leap
from leap.config import Settings, settings
from leap.db.triggers import RESPONSE_NOTIFY_TRIGGER, response_notify_function

MIGRATION = (
    Path(leap.__file__).parent
    / "db/migrations/versions/3c1f9a2e7b40_initial_schema_and_response_notify.py"
)


class RecordingOp:
    def __init__(self):
        self.executed = []

    def execute(self, sql):
        self.executed.append(str(sql))

    def f(self, name):
        return name

    def __getattr__(self, name):
        return lambda *args, **kwargs: None


def _run_upgrade():
    spec = importlib.util.spec_from_file_location("initial_migration", MIGRATION)
    migration = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(migration)
    migration.op = RecordingOp()
    migration.upgrade()
    return migration.op.executed


def test_migration_notifies_on_configured_channel():
    executed = _run_upgrade()
    assert any(f"pg_notify('{settings.notify_channel}'" in sql for sql in executed)
    assert any(RESPONSE_NOTIFY_TRIGGER in sql for sql in executed)


def test_migration_follows_channel_override(monkeypatch):
    monkeypatch.setattr(settings, "notify_channel", "acme_survey_events")
    executed = _run_upgrade()
    assert any("pg_notify('acme_survey_events'" in sql for sql in executed)
    assert not any("pg_notify('survey_events'" in sql for sql in executed)


def test_function_quotes_channel():
    assert "pg_notify('it''s', " in response_notify_function("it's")


def test_channel_must_be_an_identifier():
    with pytest.raises(ValidationError):
        Settings(notify_channel="survey events; DROP TABLE campaigns")
