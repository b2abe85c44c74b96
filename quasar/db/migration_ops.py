"""
Existence-checked DDL helpers for migrations

Every helper inspects the live schema first, so a migration built from them can
be re-run against a database where the step was applied partially (or fully)
without failing. Guarded helpers return True when they changed the schema.
"""
from typing import Any, Dict, Iterable, List, Sequence

import sqlalchemy as sa
from alembic import op

from quasar.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)


def _inspector() -> sa.Inspector:
    # New inspector per call: reflection results are cached per instance
    return sa.inspect(op.get_bind())


def table_exists(table: str) -> bool:
    return _inspector().has_table(table)


def column_exists(table: str, column: str) -> bool:
    if not table_exists(table):
        return False
    return any(col["name"] == column for col in _inspector().get_columns(table))


def index_exists(table: str, index_name: str) -> bool:
    if not table_exists(table):
        return False
    return any(ix["name"] == index_name for ix in _inspector().get_indexes(table))


def foreign_key_exists(table: str, name: str) -> bool:
    if not table_exists(table):
        return False
    return any(fk.get("name") == name for fk in _inspector().get_foreign_keys(table))


def unique_constraint_exists(table: str, name: str) -> bool:
    if not table_exists(table):
        return False
    return any(uq.get("name") == name for uq in _inspector().get_unique_constraints(table))


def create_table_if_missing(name: str, *columns: Any, **kwargs) -> bool:
    if table_exists(name):
        logger.info(f"Table {name} already exists, skipping create")
        return False
    op.create_table(name, *columns, **kwargs)
    return True


def drop_table_if_exists(name: str) -> bool:
    if not table_exists(name):
        logger.info(f"Table {name} does not exist, skipping drop")
        return False
    op.drop_table(name)
    return True


def add_column_if_missing(table: str, column: sa.Column) -> bool:
    if column_exists(table, column.name):
        logger.info(f"Column {table}.{column.name} already exists, skipping add")
        return False
    with op.batch_alter_table(table) as batch_op:
        batch_op.add_column(column)
    return True


def drop_column_if_exists(table: str, column: str) -> bool:
    if not column_exists(table, column):
        logger.info(f"Column {table}.{column} does not exist, skipping drop")
        return False
    with op.batch_alter_table(table) as batch_op:
        batch_op.drop_column(column)
    return True


def rename_column_if_needed(table: str, old: str, new: str) -> bool:
    """Rename only when `old` is present and `new` is not"""
    if not column_exists(table, old):
        logger.info(f"Column {table}.{old} not found, skipping rename to {new}")
        return False
    if column_exists(table, new):
        logger.warning(f"Both {table}.{old} and {table}.{new} exist, skipping rename")
        return False
    with op.batch_alter_table(table) as batch_op:
        batch_op.alter_column(old, new_column_name=new)
    return True


def create_index_if_missing(index_name: str, table: str, columns: Sequence[str], unique: bool = False) -> bool:
    if index_exists(table, index_name):
        logger.info(f"Index {index_name} already exists, skipping create")
        return False
    op.create_index(index_name, table, list(columns), unique=unique)
    return True


def drop_index_if_exists(index_name: str, table: str) -> bool:
    if not index_exists(table, index_name):
        return False
    op.drop_index(index_name, table_name=table)
    return True


def create_foreign_key_if_missing(
    name: str,
    source_table: str,
    referent_table: str,
    local_cols: List[str],
    remote_cols: List[str],
    ondelete: str = None,
) -> bool:
    if foreign_key_exists(source_table, name):
        logger.info(f"Foreign key {name} already exists, skipping create")
        return False
    with op.batch_alter_table(source_table) as batch_op:
        batch_op.create_foreign_key(name, referent_table, local_cols, remote_cols, ondelete=ondelete)
    return True


def drop_constraint_if_exists(name: str, table: str, type_: str) -> bool:
    """Drop a named `foreignkey` or `unique` constraint when present"""
    exists = {
        "foreignkey": foreign_key_exists,
        "unique": unique_constraint_exists,
    }[type_](table, name)
    if not exists:
        return False
    with op.batch_alter_table(table) as batch_op:
        batch_op.drop_constraint(name, type_=type_)
    return True


def insert_missing_rows(table: sa.Table, rows: Iterable[Dict[str, Any]], key_columns: Sequence[str]) -> int:
    """Insert the rows whose key is not already present; returns the count inserted"""
    conn = op.get_bind()
    key_cols = [table.c[name] for name in key_columns]
    existing = {tuple(row) for row in conn.execute(sa.select(*key_cols))}

    pending = []
    for row in rows:
        key = tuple(row[name] for name in key_columns)
        if key in existing:
            continue
        existing.add(key)
        pending.append(row)

    if pending:
        op.bulk_insert(table, pending)
    logger.info(f"Inserted {len(pending)} row(s) into {table.name}")
    return len(pending)


# Column groups mirroring the model mixins

def id_column() -> sa.Column:
    return sa.Column("id", sa.Uuid(), primary_key=True)


def timestamp_columns() -> List[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    ]


def audit_columns() -> List[sa.Column]:
    return [
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("updated_by", sa.Uuid(), nullable=True),
    ]


def soft_delete_columns() -> List[sa.Column]:
    return [
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("deleted_by", sa.Uuid(), nullable=True),
    ]
