import sqlite3
from pathlib import Path

import pytest

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.rules.loader import load_rules

PROJECT_ROOT = Path(__file__).resolve().parent.parent
MIGRATIONS_DIR = PROJECT_ROOT / "migrations"
RULES_PATH = PROJECT_ROOT / "rules.yaml"


@pytest.fixture
def rules():
    return load_rules(RULES_PATH)


@pytest.fixture
def db_path(tmp_path):
    """A migrated SQLite database in a temporary directory."""
    path = str(tmp_path / "forge.db")
    SQLiteMigrator(path, str(MIGRATIONS_DIR)).run_migrations()
    return path


@pytest.fixture
def admin_user(db_path):
    conn = sqlite3.connect(db_path)
    conn.execute(
        "INSERT INTO users (id, username, display_name, email, roles_json, registered) "
        "VALUES (1, 'admin', 'Site Admin', 'admin@example.com', '[\"administrator\"]', "
        "'2024-01-01 00:00:00')"
    )
    conn.commit()
    conn.close()
    return 1
