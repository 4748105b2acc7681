from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import httpx
import openpyxl
import pytest

TEMPLATE = (
    "<<Method>> <<Path>>\n"
    "Host: <<Host>>\n"
    "Accept: application/json\n"
    "X-Case: <<TestCase>>\n"
    "\n"
    "<<Body>>\n"
)

USERS = {
    "/users/1": {"id": 1, "name": "Ada", "roles": ["admin", "dev"]},
    "/users/2": {"id": 2, "name": "Bob", "active": True},
}


def fake_api(request: httpx.Request) -> httpx.Response:
    """Tiny in-memory service used by the executor and runner tests."""
    path = request.url.path
    if request.method == "GET" and path in USERS:
        return httpx.Response(200, json=USERS[path])
    if request.method == "POST" and path == "/users":
        payload = json.loads(request.content or b"{}")
        return httpx.Response(200, json={"id": 3, **payload})
    if request.method == "DELETE" and path.startswith("/users/"):
        return httpx.Response(204)
    if path == "/broken":
        return httpx.Response(200, text="<html>not json</html>")
    return httpx.Response(404)


@pytest.fixture
def template_text() -> str:
    return TEMPLATE


@pytest.fixture
def template_file(tmp_path: Path) -> Path:
    p = tmp_path / "template.txt"
    p.write_text(TEMPLATE, encoding="utf-8")
    return p


@pytest.fixture
def mock_transport() -> httpx.MockTransport:
    return httpx.MockTransport(fake_api)


@pytest.fixture
def make_workbook(tmp_path: Path) -> Callable[..., Path]:
    def _make(
        inputs: Sequence[Sequence[object]],
        baselines: Sequence[Sequence[object]],
        name: str = "cases.xlsx",
        extra_sheets: Optional[Dict[str, List[Sequence[object]]]] = None,
    ) -> Path:
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Input"
        for row in inputs:
            ws.append(list(row))
        ws = wb.create_sheet("Baseline")
        for row in baselines:
            ws.append(list(row))
        for sheet_name, rows in (extra_sheets or {}).items():
            ws = wb.create_sheet(sheet_name)
            for row in rows:
                ws.append(list(row))
        path = tmp_path / name
        wb.save(path)
        return path

    return _make
