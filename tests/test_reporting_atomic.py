import csv
import json
import logging

from dogplaces.reporting import ProgressReporter, atomic_write_text, read_rows, write_csv, write_json


def test_atomic_write_text(tmp_path):
    path = tmp_path / "atomic.txt"

    atomic_write_text(str(path), "first")
    assert path.read_text(encoding="utf-8") == "first"

    atomic_write_text(str(path), "second")
    assert path.read_text(encoding="utf-8") == "second"

    leftovers = [p for p in tmp_path.iterdir() if p.name != "atomic.txt"]
    assert not leftovers


def test_write_json_creates_parent_and_keeps_unicode(tmp_path):
    path = tmp_path / "nested" / "rows.json"
    write_json(path, [{"name": "Café ☕"}])
    assert json.loads(path.read_text(encoding="utf-8")) == [{"name": "Café ☕"}]
    assert "Café ☕" in path.read_text(encoding="utf-8")
    assert read_rows(path) == [{"name": "Café ☕"}]


def test_write_csv_joins_lists_and_blanks_none(tmp_path):
    path = tmp_path / "rows.csv"
    rows = [
        {"id": "a", "name": "Paw, Cafe", "categories": ["cafe", "park"], "rating": None, "extra": 1},
    ]
    write_csv(path, rows, ["id", "name", "categories", "rating"])
    with path.open(encoding="utf-8", newline="") as f:
        parsed = list(csv.DictReader(f))
    assert parsed == [{"id": "a", "name": "Paw, Cafe", "categories": "cafe|park", "rating": ""}]


def test_progress_reporter_logs_every_n(caplog):
    logger = logging.getLogger("test.progress")
    reporter = ProgressReporter("reviews", total_estimate=5, log_every=2, logger=logger)
    with caplog.at_level(logging.INFO, logger="test.progress"):
        for _ in range(5):
            reporter.advance()
        reporter.finish()
    messages = [r.getMessage() for r in caplog.records]
    assert messages == [
        "Progress: stage=reviews processed=2/5",
        "Progress: stage=reviews processed=4/5",
        "Progress: stage=reviews processed=5/5",
    ]
