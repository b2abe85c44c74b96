"""
Router type generator

Reads the FastAPI route modules with `ast` (nothing is imported) and
produces a typed manifest of every endpoint for the frontend clients:

    {alias: {procedure: {"kind": "query" | "mutation", "method": ..., "path": ...}}}

The alias is the camel-cased module name, the procedure the camel-cased
endpoint function name. GET endpoints are queries, everything else is a
mutation.
"""
import ast
import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from quasar.core.logging_config import LoggingConfig
from quasar.core.utils import to_camel

logger = LoggingConfig.get_logger(__name__)

HTTP_METHODS = ("get", "post", "put", "patch", "delete")

DEFAULT_ROUTES_DIR = Path(__file__).resolve().parent.parent / "api" / "routes"

Manifest = Dict[str, Dict[str, Dict[str, str]]]


def get_router_prefix(tree: ast.Module) -> Optional[str]:
    """Prefix of the module-level `router = APIRouter(...)`, "" when unset, None without a router"""
    for node in tree.body:
        if not isinstance(node, ast.Assign) or not isinstance(node.value, ast.Call):
            continue
        func = node.value.func
        name = func.id if isinstance(func, ast.Name) else getattr(func, "attr", None)
        if name != "APIRouter":
            continue
        for keyword in node.value.keywords:
            if keyword.arg == "prefix" and isinstance(keyword.value, ast.Constant):
                return str(keyword.value.value)
        return ""
    return None


def extract_endpoints(tree: ast.Module, prefix: str = "") -> Dict[str, Dict[str, str]]:
    """Map of procedure name to kind, HTTP method and full path"""
    procedures: Dict[str, Dict[str, str]] = {}
    for node in tree.body:
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            continue
        for decorator in node.decorator_list:
            if not isinstance(decorator, ast.Call) or not isinstance(decorator.func, ast.Attribute):
                continue
            if decorator.func.attr not in HTTP_METHODS:
                continue
            path = ""
            if decorator.args and isinstance(decorator.args[0], ast.Constant):
                path = str(decorator.args[0].value)
            method = decorator.func.attr.upper()
            procedures[to_camel(node.name)] = {
                "kind": "query" if method == "GET" else "mutation",
                "method": method,
                "path": prefix + path or "/",
            }
            break
    return procedures


def collect_routers(routes_dir: Union[str, Path] = DEFAULT_ROUTES_DIR) -> Manifest:
    """Scan every route module of `routes_dir`; modules without a router are skipped"""
    routes_dir = Path(routes_dir)
    manifest: Manifest = {}
    for route_file in sorted(routes_dir.glob("*.py")):
        if route_file.name.startswith("_"):
            continue
        tree = ast.parse(route_file.read_text(encoding="utf-8"), filename=str(route_file))
        prefix = get_router_prefix(tree)
        if prefix is None:
            logger.debug(f"No APIRouter in {route_file.name}, skipping")
            continue
        procedures = extract_endpoints(tree, prefix)
        if procedures:
            manifest[to_camel(route_file.stem)] = {name: procedures[name] for name in sorted(procedures)}
    return {alias: manifest[alias] for alias in sorted(manifest)}


def render_json(manifest: Manifest) -> str:
    return json.dumps(manifest, indent=2, sort_keys=True) + "\n"


def render_typescript(manifest: Manifest) -> str:
    lines = [
        "// Generated by quasar-router-types. Do not edit.",
        "",
        "export type Procedure<K extends 'query' | 'mutation', M extends string, P extends string> = {",
        "  kind: K;",
        "  method: M;",
        "  path: P;",
        "};",
        "",
        "export type AppRouter = {",
    ]
    for alias, procedures in manifest.items():
        lines.append(f"  {alias}: {{")
        for name, info in procedures.items():
            lines.append(f"    {name}: Procedure<'{info['kind']}', '{info['method']}', '{info['path']}'>;")
        lines.append("  };")
    lines.append("};")
    lines.append("")
    return "\n".join(lines)


def render(manifest: Manifest, fmt: str = "ts") -> str:
    if fmt == "json":
        return render_json(manifest)
    if fmt == "ts":
        return render_typescript(manifest)
    raise ValueError(f"Unknown format: {fmt}")


def generate(routes_dir: Union[str, Path] = DEFAULT_ROUTES_DIR, fmt: str = "ts") -> str:
    manifest = collect_routers(routes_dir)
    logger.info(f"Collected {sum(len(p) for p in manifest.values())} procedures from {len(manifest)} routers")
    return render(manifest, fmt)


def summarize(manifest: Manifest) -> Dict[str, Any]:
    return {
        "routers": len(manifest),
        "queries": sum(1 for p in manifest.values() for info in p.values() if info["kind"] == "query"),
        "mutations": sum(1 for p in manifest.values() for info in p.values() if info["kind"] == "mutation"),
    }
