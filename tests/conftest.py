from pathlib import Path

import pytest

from cutroom.adapters.sqlite.migrator import SQLiteMigrator
from cutroom.rules.loader import load_rules
from cutroom.rules.models import Rules

ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def rules() -> Rules:
    """Real rules from the project root."""
    return load_rules(ROOT / "rules.yaml")


@pytest.fixture
def db_path(tmp_path) -> str:
    """Fresh SQLite database with all migrations applied."""
    path = str(tmp_path / "cutroom.db")
    SQLiteMigrator(path, str(ROOT / "migrations")).run_migrations()
    return path
