"""
Tests for the router type generator and its command line
"""
import ast
import json

from quasar.cli.router_types import main
from quasar.tools.router_types import (DEFAULT_ROUTES_DIR, collect_routers,
                                       extract_endpoints, get_router_prefix,
                                       render)

SAMPLE_ROUTE = '''
from fastapi import APIRouter

router = APIRouter(prefix="/api/widgets", tags=["widgets"])


@router.get("")
async def list_widgets():
    pass


@router.get("/{widget_id}")
async def get_widget(widget_id: str):
    pass


@router.post("/{widget_id}/archive")
def archive_widget(widget_id: str):
    pass


def helper():
    pass
'''


def test_extract_endpoints():
    tree = ast.parse(SAMPLE_ROUTE)
    prefix = get_router_prefix(tree)

    assert prefix == "/api/widgets"
    assert extract_endpoints(tree, prefix) == {
        "listWidgets": {"kind": "query", "method": "GET", "path": "/api/widgets"},
        "getWidget": {"kind": "query", "method": "GET", "path": "/api/widgets/{widget_id}"},
        "archiveWidget": {"kind": "mutation", "method": "POST", "path": "/api/widgets/{widget_id}/archive"},
    }


def test_module_without_router_is_skipped(tmp_path):
    (tmp_path / "widgets.py").write_text(SAMPLE_ROUTE)
    (tmp_path / "helpers.py").write_text("def util():\n    return 1\n")
    (tmp_path / "__init__.py").write_text("")

    assert list(collect_routers(tmp_path)) == ["widgets"]


def test_application_routes():
    manifest = collect_routers(DEFAULT_ROUTES_DIR)

    orders = manifest["adminOrders"]
    assert orders["listOrders"] == {"kind": "query", "method": "GET", "path": "/api/admin/orders"}
    assert orders["createOrder"]["kind"] == "mutation"
    assert manifest["health"]["healthCheck"]["path"] == "/health"
    assert "clientSections" in manifest


def test_render_typescript():
    manifest = {"widgets": {"listWidgets": {"kind": "query", "method": "GET", "path": "/api/widgets"}}}
    output = render(manifest, "ts")

    assert "export type AppRouter = {" in output
    assert "    listWidgets: Procedure<'query', 'GET', '/api/widgets'>;" in output


def test_cli_writes_json(tmp_path, capsys):
    out = tmp_path / "generated" / "router.json"
    assert main(["--out", str(out), "--format", "json"]) == 0

    manifest = json.loads(out.read_text())
    assert manifest["adminOrders"]["cancelOrder"]["method"] == "POST"
    assert "Wrote" in capsys.readouterr().out


def test_cli_check(tmp_path):
    out = tmp_path / "router.ts"
    assert main(["--out", str(out), "--check"]) == 1

    assert main(["--out", str(out)]) == 0
    assert main(["--out", str(out), "--check"]) == 0

    out.write_text(out.read_text() + "// edited\n")
    assert main(["--out", str(out), "--check"]) == 1


def test_cli_check_needs_out():
    assert main(["--check"]) == 2


def test_cli_missing_routes_dir(tmp_path):
    assert main(["--routes", str(tmp_path / "missing")]) == 1
