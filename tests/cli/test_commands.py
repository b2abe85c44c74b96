"""
Tests for the migration, seed and static server commands
"""
from fastapi.testclient import TestClient

from quasar.cli import migrations, seed, static_server
from quasar.seeders import SEEDERS


def test_static_app_serves_index(tmp_path):
    (tmp_path / "index.html").write_text("<h1>storefront</h1>")
    (tmp_path / "app.js").write_text("console.log('ok')")

    client = TestClient(static_server.create_static_app(tmp_path))

    assert "storefront" in client.get("/").text
    assert client.get("/app.js").status_code == 200
    assert client.get("/missing.css").status_code == 404


def test_static_server_missing_directory(tmp_path):
    assert static_server.main([str(tmp_path / "dist")]) == 1


def test_static_server_runs_uvicorn(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr("uvicorn.run", lambda app, host, port: calls.append((host, port)))

    assert static_server.main([str(tmp_path), "--port", "4321", "--host", "127.0.0.1"]) == 0
    assert calls == [("127.0.0.1", 4321)]


def test_migrate_without_command(capsys):
    assert migrations.main([]) == 2
    assert "usage" in capsys.readouterr().out


def test_migrate_upgrade_and_current(tmp_path, capsys):
    url = f"sqlite:///{tmp_path / 'cli.db'}"

    assert migrations.main(["--database-url", url, "upgrade"]) == 0
    assert "applied  0001_access_control" in capsys.readouterr().out

    assert migrations.main(["--database-url", url, "upgrade"]) == 0
    assert "Database is up to date" in capsys.readouterr().out

    assert migrations.main(["--database-url", url, "pending"]) == 0
    assert "No pending migrations" in capsys.readouterr().out

    assert migrations.main(["--database-url", url, "downgrade", "base"]) == 0
    assert "reverted 0001_access_control" in capsys.readouterr().out

    assert migrations.main(["--database-url", url, "current"]) == 0
    assert "<base>" in capsys.readouterr().out


def test_migrate_history_json(tmp_path, capsys):
    import json

    url = f"sqlite:///{tmp_path / 'cli.db'}"
    assert migrations.main(["--database-url", url, "upgrade", "0002_catalog"]) == 0
    capsys.readouterr()

    assert migrations.main(["--database-url", url, "history", "--json"]) == 0
    history = json.loads(capsys.readouterr().out)
    assert [entry["applied"] for entry in history[:3]] == [True, True, False]


def test_migrate_bad_target(tmp_path):
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    assert migrations.main(["--database-url", url, "upgrade", "9999_nope"]) == 1


def test_migrate_run_passes_through_to_alembic(tmp_path, capsys):
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    assert migrations.main(["--database-url", url, "run", "upgrade", "head"]) == 0
    capsys.readouterr()

    assert migrations.main(["--database-url", url, "heads"]) == 0
    head = capsys.readouterr().out.strip()
    assert head.startswith("0013_")

    assert migrations.main(["--database-url", url, "current"]) == 0
    assert capsys.readouterr().out.strip() == head

    assert migrations.main(["--database-url", url, "pending"]) == 0
    assert "No pending migrations" in capsys.readouterr().out


def test_migrate_run_rejects_unknown_command(tmp_path):
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    assert migrations.main(["--database-url", url, "run", "bogus"]) == 1
    assert migrations.main(["--database-url", url, "run"]) == 1


def test_seed_list(capsys):
    assert seed.main(["--list"]) == 0
    out = capsys.readouterr().out
    for seeder in SEEDERS:
        assert seeder.name in out


def test_seed_runs_selected(db, capsys):
    assert seed.main(["roles"]) == 0
    assert "roles" in capsys.readouterr().out


def test_seed_unknown_name(db):
    assert seed.main(["unicorns"]) == 1
