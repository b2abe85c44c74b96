"""
Tests for the existence-checked migration helpers
"""
import uuid

import pytest
import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations

import quasar.models  # noqa: F401
from quasar.core.database import Base
from quasar.db import migration_ops as ops
from quasar.db.migrator import Migrator


@pytest.fixture
def engine(tmp_path):
    engine = sa.create_engine(f"sqlite:///{tmp_path / 'ops.db'}", poolclass=sa.pool.NullPool)
    yield engine
    engine.dispose()


@pytest.fixture
def op_context(engine):
    """Binds alembic's `op` proxy to a live connection"""
    with engine.begin() as connection:
        context = MigrationContext.configure(connection)
        with Operations.context(context):
            yield connection


def _create_widgets():
    return ops.create_table_if_missing(
        "widgets",
        ops.id_column(),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("legacy_code", sa.String(20), nullable=True),
    )


def test_create_and_drop_table(op_context):
    assert _create_widgets() is True
    assert _create_widgets() is False
    assert ops.table_exists("widgets")

    assert ops.drop_table_if_exists("widgets") is True
    assert ops.drop_table_if_exists("widgets") is False


def test_columns(op_context):
    _create_widgets()

    assert ops.add_column_if_missing("widgets", sa.Column("color", sa.String(20))) is True
    assert ops.add_column_if_missing("widgets", sa.Column("color", sa.String(20))) is False
    assert ops.column_exists("widgets", "color")
    assert not ops.column_exists("missing_table", "color")

    assert ops.drop_column_if_exists("widgets", "color") is True
    assert ops.drop_column_if_exists("widgets", "color") is False


def test_rename_column_if_needed(op_context):
    """Test that a rename runs once and never clobbers an existing column"""
    _create_widgets()

    assert ops.rename_column_if_needed("widgets", "legacy_code", "code") is True
    assert ops.rename_column_if_needed("widgets", "legacy_code", "code") is False
    assert ops.column_exists("widgets", "code")

    ops.add_column_if_missing("widgets", sa.Column("legacy_code", sa.String(20)))
    assert ops.rename_column_if_needed("widgets", "legacy_code", "code") is False
    assert ops.column_exists("widgets", "legacy_code")


def test_indexes(op_context):
    _create_widgets()

    assert ops.create_index_if_missing("ix_widgets_name", "widgets", ["name"]) is True
    assert ops.create_index_if_missing("ix_widgets_name", "widgets", ["name"]) is False
    assert ops.drop_index_if_exists("ix_widgets_name", "widgets") is True
    assert ops.drop_index_if_exists("ix_widgets_name", "widgets") is False


def test_insert_missing_rows(op_context):
    _create_widgets()
    widgets = sa.table("widgets", sa.column("id", sa.Uuid()), sa.column("name", sa.String()))

    rows = [{"id": uuid.uuid4(), "name": "bolt"}, {"id": uuid.uuid4(), "name": "nut"}]
    assert ops.insert_missing_rows(widgets, rows, ["name"]) == 2

    again = [{"id": uuid.uuid4(), "name": "nut"}, {"id": uuid.uuid4(), "name": "gear"},
             {"id": uuid.uuid4(), "name": "gear"}]
    assert ops.insert_missing_rows(widgets, again, ["name"]) == 1
    assert op_context.execute(sa.select(sa.func.count()).select_from(widgets)).scalar() == 3


def test_head_schema_matches_models(engine):
    """Every model table exists at head with exactly the model's columns"""
    Migrator(database_url=str(engine.url)).upgrade()
    inspector = sa.inspect(engine)

    for table in Base.metadata.sorted_tables:
        columns = {column["name"] for column in inspector.get_columns(table.name)}
        assert columns == {column.name for column in table.columns}, table.name
