import sqlite3
from pathlib import Path

import pytest

from src.adapters.sqlite.migrator import SQLiteMigrator

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"


@pytest.fixture
def temp_db_path(tmp_path):
    return str(tmp_path / "test_db.sqlite")


def _tables(db_path):
    conn = sqlite3.connect(db_path)
    try:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    finally:
        conn.close()
    return {r[0] for r in rows}


def test_migrator_applies_initial(temp_db_path):
    applied = SQLiteMigrator(temp_db_path, str(MIGRATIONS_DIR)).run_migrations()

    assert applied == ["0001_init.sql"]
    assert {
        "_migrations",
        "connection",
        "users",
        "posts",
        "postmeta",
        "terms",
        "term_relationships",
        "transients",
    } <= _tables(temp_db_path)


def test_initial_seed_rows(temp_db_path):
    SQLiteMigrator(temp_db_path, str(MIGRATIONS_DIR)).run_migrations()

    conn = sqlite3.connect(temp_db_path)
    try:
        category = conn.execute("SELECT name, slug, taxonomy FROM terms WHERE id = 1").fetchone()
        connection = conn.execute("SELECT connected, connection_key FROM connection").fetchall()
    finally:
        conn.close()
    assert category == ("Uncategorized", "uncategorized", "category")
    assert connection == [(0, "")]


def test_migrator_is_idempotent(temp_db_path):
    migrator = SQLiteMigrator(temp_db_path, str(MIGRATIONS_DIR))

    migrator.run_migrations()
    assert migrator.run_migrations() == []
    assert migrator.pending() == []

    conn = sqlite3.connect(temp_db_path)
    count = conn.execute("SELECT count(*) FROM _migrations").fetchone()[0]
    conn.close()
    assert count == 1


def test_down_section_is_not_applied(tmp_path):
    migrations = tmp_path / "migrations"
    migrations.mkdir()
    (migrations / "0001_a.sql").write_text(
        "CREATE TABLE a (id INTEGER);\n-- Down\nDROP TABLE a;\n"
    )
    db = str(tmp_path / "db.sqlite")
    SQLiteMigrator(db, str(migrations)).run_migrations()
    assert "a" in _tables(db)


def test_failed_migration_raises(tmp_path):
    migrations = tmp_path / "migrations"
    migrations.mkdir()
    (migrations / "0001_bad.sql").write_text("CREATE TABLE (broken;")
    migrator = SQLiteMigrator(str(tmp_path / "db.sqlite"), str(migrations))
    with pytest.raises(RuntimeError, match="0001_bad.sql"):
        migrator.run_migrations()
    assert migrator.pending() == ["0001_bad.sql"]
