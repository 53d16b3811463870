import json
from pathlib import Path

from clusterprep.cli import main


def test_cli_validates_csv_by_default(tmp_path: Path, capsys):
    csv_path = tmp_path / "people.csv"
    csv_path.write_text("name,age\nAlice,30\nBob,25\nDana,40\n", encoding="utf-8")

    assert main([str(csv_path)]) == 0
    out = capsys.readouterr().out
    assert "Operation: validate  Status: complete" in out
    assert "Valid: True  Rows: 3  Columns: 2" in out
    assert "age: type=numeric" in out


def test_cli_runs_operation_and_writes_json(tmp_path: Path, capsys):
    json_path = tmp_path / "points.json"
    json_path.write_text(json.dumps([{"x": 0}, {"x": 5}, {"x": 10}]), encoding="utf-8")
    out_path = tmp_path / "result.json"

    code = main(
        [
            str(json_path),
            "--operation",
            "normalize",
            "--config",
            '{"columns": ["x"], "method": "minmax"}',
            "--output",
            str(out_path),
        ]
    )
    assert code == 0
    saved = json.loads(out_path.read_text(encoding="utf-8"))
    assert saved["type"] == "complete"
    assert [r["x"] for r in saved["result"]["data"]] == [0.0, 0.5, 1.0]


def test_cli_reports_operation_errors(tmp_path: Path, capsys):
    csv_path = tmp_path / "numbers.csv"
    csv_path.write_text("1,2\n3,4\n", encoding="utf-8")

    code = main([str(csv_path), "--no-header", "--operation", "normalize"])
    assert code == 1
    out = capsys.readouterr().out
    assert "Status: error" in out
