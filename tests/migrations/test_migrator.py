"""
Tests for the migration runner against a file-backed SQLite database
"""
import shutil
import textwrap
import uuid

import pytest
import sqlalchemy as sa

from quasar.core.config import PROJECT_ROOT
from quasar.core.errors import MigrationError
from quasar.db.migrator import Migrator

HEAD = "0013_checkout_method_settings"

products = sa.table(
    "products",
    sa.column("id", sa.Uuid()),
    sa.column("name", sa.String()),
    sa.column("slug", sa.String()),
    sa.column("sku", sa.String()),
)

variants = sa.table(
    "product_variants",
    sa.column("id", sa.Uuid()),
    sa.column("product_id", sa.Uuid()),
    sa.column("sku", sa.String()),
    sa.column("name", sa.String()),
    sa.column("stock_quantity", sa.Integer()),
)

warehouses = sa.table(
    "warehouses",
    sa.column("id", sa.Uuid()),
    sa.column("code", sa.String()),
    sa.column("name", sa.String()),
    sa.column("is_active", sa.Boolean()),
    sa.column("is_default", sa.Boolean()),
)

inventory_items = sa.table(
    "inventory_items",
    sa.column("id", sa.Uuid()),
    sa.column("product_variant_id", sa.Uuid()),
    sa.column("warehouse_id", sa.Uuid()),
    sa.column("quantity", sa.Integer()),
)

permissions = sa.table(
    "permissions",
    sa.column("id", sa.Uuid()),
    sa.column("name", sa.String()),
    sa.column("resource", sa.String()),
    sa.column("action", sa.String()),
    sa.column("scope", sa.String()),
)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'migrations.db'}"


@pytest.fixture
def migrator(database_url):
    return Migrator(database_url=database_url)


@pytest.fixture
def engine(database_url):
    engine = sa.create_engine(database_url, poolclass=sa.pool.NullPool)
    yield engine
    engine.dispose()


def _columns(engine, table):
    return {column["name"] for column in sa.inspect(engine).get_columns(table)}


def test_history_is_ordered(migrator):
    """Test that revisions are listed oldest first and none are applied"""
    history = migrator.history()
    assert history[0].revision == "0001_access_control"
    assert history[0].down_revision is None
    assert history[-1].revision == HEAD
    assert [info.revision for info in history] == sorted(info.revision for info in history)
    assert not any(info.applied for info in history)
    assert migrator.heads() == [HEAD]


def test_upgrade_to_head(migrator, engine):
    applied = migrator.upgrade()

    assert applied[0] == "0001_access_control"
    assert applied[-1] == HEAD
    assert migrator.current() == [HEAD]
    assert migrator.pending() == []
    assert migrator.is_up_to_date()

    tables = set(sa.inspect(engine).get_table_names())
    assert {"users", "orders", "sections", "inventory_items", "loyalty_transactions"} <= tables


def test_upgrade_twice_is_a_no_op(migrator):
    migrator.upgrade()
    assert migrator.upgrade() == []
    assert migrator.current() == [HEAD]


def test_rerun_step_on_existing_schema(migrator, engine):
    """A step whose tables already exist is re-run without failing"""
    migrator.upgrade("0003_customers")
    migrator.stamp("0002_catalog")
    assert migrator.pending()[0] == "0003_customers"

    applied = migrator.upgrade()
    assert applied[0] == "0003_customers"
    assert migrator.current() == [HEAD]


def test_upgrade_to_intermediate_target(migrator):
    applied = migrator.upgrade("0004_orders")
    assert applied == ["0001_access_control", "0002_catalog", "0003_customers", "0004_orders"]
    assert migrator.pending()[0] == "0005_cms"


def test_downgrade_to_base(migrator, engine):
    migrator.upgrade()
    reverted = migrator.downgrade("base")

    assert reverted[0] == HEAD
    assert reverted[-1] == "0001_access_control"
    assert migrator.current() == []
    assert "users" not in sa.inspect(engine).get_table_names()


def test_customer_phone_rename(migrator, engine):
    migrator.upgrade("0010_warehouse_inventory")
    assert "phone" in _columns(engine, "customers")

    migrator.upgrade("0011_rename_customer_phone")
    columns = _columns(engine, "customers")
    assert "phone_number" in columns
    assert "phone" not in columns

    migrator.downgrade("0010_warehouse_inventory")
    columns = _columns(engine, "customers")
    assert "phone" in columns
    assert "phone_number" not in columns


def test_stock_moves_to_default_warehouse(migrator, engine):
    """Test that variant stock becomes inventory under the MAIN warehouse"""
    migrator.upgrade("0009_order_fulfillment")
    product_id, variant_id = uuid.uuid4(), uuid.uuid4()
    with engine.begin() as conn:
        conn.execute(products.insert().values(id=product_id, name="Mug", slug="mug", sku="MUG"))
        conn.execute(variants.insert().values(id=variant_id, product_id=product_id, sku="MUG-RED",
                                              name="Red", stock_quantity=7))

    migrator.upgrade("0010_warehouse_inventory")

    assert "stock_quantity" not in _columns(engine, "product_variants")
    with engine.connect() as conn:
        warehouse = conn.execute(sa.select(warehouses.c.id, warehouses.c.is_default)
                                 .where(warehouses.c.code == "MAIN")).one()
        quantity = conn.execute(sa.select(inventory_items.c.quantity).where(
            inventory_items.c.product_variant_id == variant_id,
            inventory_items.c.warehouse_id == warehouse.id,
        )).scalar_one()
    assert warehouse.is_default
    assert quantity == 7


def test_inventory_downgrade_sums_warehouses(migrator, engine):
    migrator.upgrade("0009_order_fulfillment")
    product_id, variant_id = uuid.uuid4(), uuid.uuid4()
    with engine.begin() as conn:
        conn.execute(products.insert().values(id=product_id, name="Mug", slug="mug", sku="MUG"))
        conn.execute(variants.insert().values(id=variant_id, product_id=product_id, sku="MUG-RED",
                                              name="Red", stock_quantity=7))
    migrator.upgrade("0010_warehouse_inventory")

    second_warehouse = uuid.uuid4()
    with engine.begin() as conn:
        conn.execute(warehouses.insert().values(id=second_warehouse, code="EAST", name="East",
                                                is_active=True, is_default=False))
        conn.execute(inventory_items.insert().values(id=uuid.uuid4(), product_variant_id=variant_id,
                                                     warehouse_id=second_warehouse, quantity=3))

    migrator.downgrade("0009_order_fulfillment")

    assert "inventory_items" not in sa.inspect(engine).get_table_names()
    with engine.connect() as conn:
        stock = conn.execute(sa.select(variants.c.stock_quantity)
                             .where(variants.c.id == variant_id)).scalar_one()
    assert stock == 10


def test_menu_permissions_skip_existing(migrator, engine):
    migrator.upgrade("0011_rename_customer_phone")
    with engine.begin() as conn:
        conn.execute(permissions.insert().values(id=uuid.uuid4(), name="read:any:order",
                                                 resource="order", action="read", scope="any"))

    migrator.upgrade()

    with engine.connect() as conn:
        names = [row.name for row in conn.execute(sa.select(permissions.c.name))]
    assert names.count("read:any:order") == 1
    assert "read:any:dashboard" in names
    assert "read:own:profile" in names

    migrator.downgrade("0011_rename_customer_phone")
    with engine.connect() as conn:
        remaining = conn.execute(sa.select(sa.func.count()).select_from(permissions)).scalar_one()
    assert remaining == 0


def test_first_active_method_becomes_default(migrator, engine):
    migrator.upgrade("0012_seed_menu_permissions")
    payment_methods = sa.table(
        "payment_methods",
        sa.column("id", sa.Uuid()),
        sa.column("code", sa.String()),
        sa.column("name", sa.String()),
        sa.column("is_active", sa.Boolean()),
        sa.column("sort_order", sa.Integer()),
    )
    with engine.begin() as conn:
        for code, is_active, sort_order in (("cod", False, 0), ("card", True, 2), ("bank", True, 1)):
            conn.execute(payment_methods.insert().values(id=uuid.uuid4(), code=code, name=code,
                                                         is_active=is_active, sort_order=sort_order))

    migrator.upgrade()

    with engine.connect() as conn:
        defaults = conn.execute(sa.text("SELECT code FROM payment_methods WHERE is_default")).scalars().all()
        fee = conn.execute(sa.text("SELECT processing_fee_type FROM payment_methods WHERE code = 'cod'")).scalar()
    assert defaults == ["bank"]
    assert fee == "FIXED"

    migrator.downgrade("0012_seed_menu_permissions")
    assert "is_default" not in _columns(engine, "payment_methods")
    assert "services" not in _columns(engine, "shipping_providers")


def _broken_scripts(tmp_path):
    """Script directory whose second step fails"""
    scripts = tmp_path / "scripts"
    versions = scripts / "versions"
    versions.mkdir(parents=True)
    shutil.copy(PROJECT_ROOT / "migrations" / "env.py", scripts / "env.py")
    shutil.copy(PROJECT_ROOT / "migrations" / "script.py.mako", scripts / "script.py.mako")

    def write(revision, down_revision, body):
        (versions / f"{revision}.py").write_text(textwrap.dedent(f'''\
            """{revision}"""
            import sqlalchemy as sa
            from alembic import op

            revision = {revision!r}
            down_revision = {down_revision!r}
            branch_labels = None
            depends_on = None


            def upgrade():
            {textwrap.indent(textwrap.dedent(body), "    ")}

            def downgrade():
                pass
            '''))

    write("0001_alpha", None, "op.create_table('alpha', sa.Column('id', sa.Integer(), primary_key=True))\n")
    write("0002_broken", "0001_alpha", "raise RuntimeError('step exploded')\n")
    write("0003_gamma", "0002_broken",
          "op.create_table('gamma', sa.Column('id', sa.Integer(), primary_key=True))\n")
    return scripts


def test_failing_step_halts_run(tmp_path, database_url, engine):
    """Test that the run stops at the failing step and later steps never run"""
    migrator = Migrator(database_url=database_url, script_location=str(_broken_scripts(tmp_path)))

    with pytest.raises(MigrationError) as exc_info:
        migrator.upgrade()

    assert exc_info.value.revision == "0002_broken"
    assert "step exploded" in str(exc_info.value)
    assert migrator.current() == ["0001_alpha"]
    assert migrator.pending() == ["0002_broken", "0003_gamma"]
    tables = sa.inspect(engine).get_table_names()
    assert "alpha" in tables
    assert "gamma" not in tables


def test_revision_numbering(tmp_path, database_url):
    migrator = Migrator(database_url=database_url, script_location=str(_broken_scripts(tmp_path)))
    path = migrator.revision("Add gift cards")
    assert path.endswith("0004_add_gift_cards.py")
