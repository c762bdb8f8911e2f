"""Tests for the folio CLI commands, run against the in-process server."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest
from httpx import ASGITransport
from typer.testing import CliRunner

from folio.cli import app
from folio.client.api import FolioApi
from folio.server import app as server_app
from folio.storage.backend import Backend

runner = CliRunner()


@pytest.fixture(autouse=True)
def _local_api(backend: Backend, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    monkeypatch.setenv("FOLIO_HOME", str(tmp_path))

    def _api(config: object) -> FolioApi:
        return FolioApi("http://test", "local", transport=ASGITransport(app=server_app))  # type: ignore[arg-type]

    with patch.object(FolioApi, "from_config", side_effect=_api):
        yield


def _new(title: str) -> str:
    result = runner.invoke(app, ["new", title])
    assert result.exit_code == 0, result.output
    assert "Created" in result.output
    return result.output.split()[-1]


def test_ls_empty() -> None:
    result = runner.invoke(app, ["ls"])
    assert result.exit_code == 0
    assert "No notebooks." in result.output


def test_new_then_ls() -> None:
    _new("Groceries")
    result = runner.invoke(app, ["ls"])
    assert result.exit_code == 0
    assert "Groceries" in result.output


def test_ls_search_filters_by_title() -> None:
    _new("Groceries")
    _new("Workouts")
    result = runner.invoke(app, ["ls", "--search", "groc"])
    assert "Groceries" in result.output
    assert "Workouts" not in result.output


def test_fav_toggles_and_filters() -> None:
    notebook_id = _new("Keeper")
    _new("Other")

    result = runner.invoke(app, ["fav", notebook_id])
    assert "★ favorited" in result.output

    listed = runner.invoke(app, ["ls", "--favorites"])
    assert "Keeper" in listed.output
    assert "Other" not in listed.output

    result = runner.invoke(app, ["fav", notebook_id])
    assert "☆ unfavorited" in result.output


def test_write_then_show(tmp_path: Path) -> None:
    notebook_id = _new("Notes")
    page = tmp_path / "page.html"
    page.write_text("<p>milk and eggs</p>")

    result = runner.invoke(app, ["write", notebook_id, str(page)])
    assert result.exit_code == 0, result.output
    assert "Saved" in result.output

    shown = runner.invoke(app, ["show", notebook_id])
    assert shown.exit_code == 0
    assert "<p>milk and eggs</p>" in shown.output
    assert "Page 1 of 1" in shown.output


def test_show_empty_page() -> None:
    notebook_id = _new("Blank")
    result = runner.invoke(app, ["show", notebook_id])
    assert "(empty page)" in result.output


def test_show_missing_notebook() -> None:
    result = runner.invoke(app, ["show", "nope"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_show_page_out_of_range() -> None:
    notebook_id = _new("Short")
    result = runner.invoke(app, ["show", notebook_id, "--page", "3"])
    assert result.exit_code == 1
    assert "no page 3" in result.output


def test_pages_add() -> None:
    notebook_id = _new("Chapters")
    result = runner.invoke(app, ["pages", notebook_id, "--add"])
    assert result.exit_code == 0
    assert "Page 1" in result.output
    assert "Page 2" in result.output


def test_rm() -> None:
    notebook_id = _new("Scratch")
    result = runner.invoke(app, ["rm", notebook_id])
    assert result.exit_code == 0
    assert "Deleted" in result.output
    assert "Scratch" not in runner.invoke(app, ["ls"]).output
