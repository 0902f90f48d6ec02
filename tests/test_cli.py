"""Tests for the keymint console script."""

import sqlite3
import sys

import pytest
from fastapi.testclient import TestClient

from keymint import cli


def test_no_command_exits_1(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["keymint"])
    with pytest.raises(SystemExit) as exc_info:
        cli.main()
    assert exc_info.value.code == 1
    assert "serve" in capsys.readouterr().out


def test_migrate_creates_database(monkeypatch, tmp_path, capsys):
    path = tmp_path / "cli.db"
    monkeypatch.setattr(sys, "argv", ["keymint", "migrate", "--database-path", str(path)])
    cli.main()

    assert "migrations applied" in capsys.readouterr().out
    conn = sqlite3.connect(path)
    try:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    finally:
        conn.close()
    assert "keys" in tables


def test_serve_passes_options_to_uvicorn(monkeypatch, tmp_path):
    import uvicorn

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setattr(
        sys, "argv",
        ["keymint", "serve", "--port", "9090", "--database-path", str(tmp_path / "s.db")],
    )
    cli.main()

    [(app, kwargs)] = calls
    assert kwargs == {"host": "0.0.0.0", "port": 9090, "log_level": "info"}

    # No lifespan: the guards and the 404 handler answer without a database.
    client = TestClient(app)
    assert client.put("/jwks").status_code == 405
    assert client.get("/auth").status_code == 405
    assert client.get("/missing").status_code == 404
