"""Tests for the processed-comment ledger."""

import json

import pytest


class TestProcessedLedger:
    def test_mark_and_query(self, ledger):
        assert not ledger.is_processed("c1")
        ledger.mark_processed("c1")
        assert ledger.is_processed("c1")
        assert "c1" in ledger
        assert len(ledger) == 1

    def test_mark_twice_is_noop(self, ledger):
        ledger.mark_processed("c1")
        ledger.mark_processed("c1")
        assert ledger.ids == ["c1"]

    def test_persists_across_instances(self, tmp_path):
        from responder.common.ledger import ProcessedLedger
        path = tmp_path / "ledger.json"
        first = ProcessedLedger(path)
        first.mark_processed("c1")
        first.mark_processed("c2")

        second = ProcessedLedger(path)
        assert second.ids == ["c1", "c2"]
        assert json.loads(path.read_text()) == ["c1", "c2"]

    def test_oldest_evicted_past_cap(self, tmp_path):
        from responder.common.ledger import ProcessedLedger
        path = tmp_path / "ledger.json"
        ledger = ProcessedLedger(path, max_entries=3)
        for i in range(5):
            ledger.mark_processed(f"c{i}")

        assert ledger.ids == ["c2", "c3", "c4"]
        assert not ledger.is_processed("c0")
        assert ProcessedLedger(path, max_entries=3).ids == ["c2", "c3", "c4"]

    def test_default_cap(self):
        from responder.common.ledger import MAX_ENTRIES
        assert MAX_ENTRIES == 1000

    @pytest.mark.parametrize("content", ["{broken", '{"ids": []}'])
    def test_malformed_file_starts_empty(self, tmp_path, caplog, content):
        import logging
        from responder.common.ledger import ProcessedLedger
        path = tmp_path / "ledger.json"
        path.write_text(content)

        with caplog.at_level(logging.WARNING, logger="responder.common.ledger"):
            ledger = ProcessedLedger(path)
        assert len(ledger) == 0
        assert "Failed to load ledger" in caplog.text

    def test_load_dedupes_and_trims(self, tmp_path):
        from responder.common.ledger import ProcessedLedger
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps(["a", "b", "a", "c", "d"]))

        ledger = ProcessedLedger(path, max_entries=2)
        assert ledger.ids == ["c", "d"]
