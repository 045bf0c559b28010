import csv
import io
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from backend.main import app


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def _upload(client, *files):
    payload = [("files", (name, content, "application/octet-stream")) for name, content in files]
    return client.post("/upload", files=payload)


def _csv(rows: int, prefix: str) -> bytes:
    lines = ["Sample,Value"] + [f"{prefix}{i},{i}" for i in range(rows)]
    return ("\n".join(lines) + "\n").encode("utf-8")


def test_health(client):
    assert client.get("/api/health").json()["status"] == "ok"


def test_upload_resolves_batch(client):
    client.put("/selection", json={"sheet_index": 0})
    response = _upload(client, ("a.csv", _csv(10, "a")), ("b.csv", _csv(5, "b")), ("c.txt", b"x"))
    body = response.json()

    assert response.status_code == 200
    assert [f["name"] for f in body["files"]] == ["a.csv", "b.csv"]
    assert [f["start_well"] for f in body["files"]] == ["A1", "C2"]
    assert body["errors"] == ["c.txt: Invalid file type .txt"]
    assert len(body["files"][0]["well_options"]) == 96


def test_parse_failure_is_reported(client):
    body = _upload(client, ("bad.xlsx", b"nope"), ("ok.csv", _csv(2, "x"))).json()
    assert [f["name"] for f in body["files"]] == ["ok.csv"]
    assert body["errors"][0].startswith("bad.xlsx: ")


def test_preview_and_selection(client):
    _upload(client, ("a.csv", _csv(3, "a")))

    # Default sheet is the second one, which a CSV does not have
    preview = client.get("/preview").json()
    assert preview["grid"] is None
    assert preview["message"]

    preview = client.put("/selection", json={"sheet_index": 0, "column_index": 1}).json()
    assert preview["column_name"] == "Value (B)"
    assert preview["populated_cells"] == 3
    assert preview["grid"][0][0]["value"] == "0"
    assert preview["grid"][1][0]["value"] == "1"
    assert preview["export_header"] == ["Well Position", "Sample", "Value", "Source File"]

    preview = client.put("/selection", json={"column_index": 20}).json()
    assert preview["grid"] is None
    assert "out of range" in preview["message"]

    assert client.put("/selection", json={"column_index": -1}).status_code == 400


def test_start_well_and_delete(client):
    client.put("/selection", json={"sheet_index": 0})
    files = _upload(client, ("a.csv", _csv(10, "a")), ("b.csv", _csv(5, "b"))).json()["files"]
    a_id, b_id = files[0]["file_id"], files[1]["file_id"]

    response = client.patch(f"/files/{b_id}/start-well", json={"well": "A1"})
    assert response.json()["start_well"] == "C2"

    assert client.patch(f"/files/{b_id}/start-well", json={"well": "Z9"}).status_code == 400
    assert client.delete("/files/unknown").status_code == 404

    client.delete(f"/files/{a_id}")
    listed = client.get("/files").json()
    assert [f["file_id"] for f in listed] == [b_id]


def test_reorder(client):
    client.put("/selection", json={"sheet_index": 0})
    files = _upload(client, ("a.csv", _csv(10, "a")), ("b.csv", _csv(5, "b"))).json()["files"]
    client.patch(f"/files/{files[0]['file_id']}/start-well", json={"well": "A1"})

    listed = client.post(f"/files/{files[1]['file_id']}/order", json={"position": 0}).json()
    assert [f["name"] for f in listed] == ["b.csv", "a.csv"]


def test_export_csv(client):
    _upload(client, ("a.csv", _csv(2, "a")))
    client.put("/selection", json={"sheet_index": 0})

    response = client.get("/export", params={"format": "csv"})
    assert response.status_code == 200
    assert "full_sheet1_concatenated_data_96wells.csv" in response.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(response.text)))
    assert len(rows) == 97
    assert rows[1] == ["A1", "a0", "0", "a.csv"]


def test_export_xlsx(client):
    _upload(client, ("a.csv", _csv(2, "a")))
    client.put("/selection", json={"sheet_index": 0})

    response = client.get("/export")
    assert response.status_code == 200
    assert response.content[:2] == b"PK"


def test_export_without_files(client):
    assert client.get("/export").status_code == 400
    assert client.get("/export", params={"format": "pdf"}).status_code == 400


def test_export_csv_with_unlabelled_column(client):
    client.put("/selection", json={"sheet_index": 0})
    _upload(client, ("wide.csv", b"Sample\ns1,5\ns2,6\n"))

    response = client.get("/export", params={"format": "csv"})
    assert response.status_code == 200
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == ["Well Position", "Sample", "Source File"]
    assert rows[2] == ["B1", "s2", "wide.csv"]


def test_preview_renders_dates_like_export(client, xlsx_bytes):
    content = xlsx_bytes({"S": [["Sample", "Run"], ["s1", datetime(2024, 1, 5)]]})
    client.put("/selection", json={"sheet_index": 0, "column_index": 1})
    _upload(client, ("dated.xlsx", content))

    preview = client.get("/preview").json()
    assert preview["grid"][0][0]["value"] == "2024-01-05T00:00:00"


def test_selection_is_applied_together(client):
    _upload(client, ("a.csv", _csv(3, "a")))
    preview = client.put("/selection", json={"sheet_index": 0, "column_index": 1}).json()
    assert (preview["sheet_index"], preview["column_index"]) == (0, 1)

    response = client.put("/selection", json={"sheet_index": 1, "column_index": -1})
    assert response.status_code == 400
    assert client.get("/preview").json()["sheet_index"] == 0


def test_upload_limit_checked_when_adding(client, monkeypatch):
    monkeypatch.setattr("backend.main.MAX_FILES", 1)
    body = _upload(client, ("a.csv", _csv(1, "a")), ("b.csv", _csv(1, "b"))).json()

    assert [f["name"] for f in body["files"]] == ["a.csv"]
    assert body["errors"] == ["b.csv: File limit reached"]
