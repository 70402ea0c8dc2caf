"""Tests for the bundled Alembic migration."""

from __future__ import annotations

import importlib.util
from pathlib import Path
from types import ModuleType

import pytest
from sqlalchemy import create_engine, inspect

import litestar_stepqueue.db

MIGRATION = (
    Path(litestar_stepqueue.db.__file__).parent / "migrations" / "versions" / "001_initial_step_queue_tables.py"
)


def load_migration() -> ModuleType:
    spec = importlib.util.spec_from_file_location("initial_step_queue_tables", MIGRATION)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.mark.integration
class TestInitialMigration:
    """Tests for the initial migration."""

    def test_upgrade_and_downgrade(self, tmp_path: Path) -> None:
        """Test the tables are created and dropped."""
        pytest.importorskip("alembic")
        from alembic.migration import MigrationContext
        from alembic.operations import Operations

        migration = load_migration()
        engine = create_engine(f"sqlite:///{tmp_path / 'migrate.db'}")

        with engine.begin() as connection, Operations.context(MigrationContext.configure(connection)):
            migration.upgrade()

        inspector = inspect(engine)
        assert set(inspector.get_table_names()) == {"jobs", "processing_steps"}
        indexes = {index["name"]: index for index in inspector.get_indexes("processing_steps")}
        assert indexes["ix_processing_steps_sequence_step_number"]["unique"]
        assert inspector.get_foreign_keys("processing_steps")[0]["referred_table"] == "jobs"

        with engine.begin() as connection, Operations.context(MigrationContext.configure(connection)):
            migration.downgrade()

        assert inspect(engine).get_table_names() == []
        engine.dispose()

    def test_revision_identifiers(self) -> None:
        """Test the revision is the root of the history."""
        pytest.importorskip("alembic")
        migration = load_migration()

        assert migration.revision == "001_initial"
        assert migration.down_revision is None
