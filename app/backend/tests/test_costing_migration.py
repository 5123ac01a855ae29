from __future__ import annotations

import importlib.util
from pathlib import Path
from types import ModuleType

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

from costing.db.base import Base
import costing.models.entities  # noqa: F401

MIGRATION_PATH = Path(__file__).resolve().parents[1] / "alembic" / "versions" / "20261018_0001_costing_schema.py"


def _load_migration() -> ModuleType:
    spec = importlib.util.spec_from_file_location("costing_schema_migration", MIGRATION_PATH)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_migration_creates_every_mapped_table_and_column() -> None:
    migration = _load_migration()
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)

    with engine.begin() as connection:
        with Operations.context(MigrationContext.configure(connection)):
            migration.upgrade()

        inspector = inspect(connection)
        assert set(inspector.get_table_names()) == set(Base.metadata.tables)
        for table in Base.metadata.sorted_tables:
            migrated = {column["name"] for column in inspector.get_columns(table.name)}
            assert migrated == {column.name for column in table.columns}, table.name

        with Operations.context(MigrationContext.configure(connection)):
            migration.downgrade()

        assert inspect(connection).get_table_names() == []
