"""Shared fixtures for responder tests."""

from datetime import datetime, timedelta, timezone

import pytest

BASE_TIME = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_comment():
    """Factory for Comment objects; minutes offsets BASE_TIME for created_at."""
    from responder.common.schemas import Comment

    def _make(
        id,
        text="",
        parent_id=None,
        minutes=0,
        author="designer",
        resolved=False,
        node_id=None,
    ):
        return Comment(
            id=id,
            parent_id=parent_id,
            author_handle=author,
            text=text,
            created_at=BASE_TIME + timedelta(minutes=minutes),
            resolved_at=BASE_TIME + timedelta(days=1) if resolved else None,
            node_id=node_id,
        )

    return _make


@pytest.fixture
def ledger(tmp_path):
    from responder.common.ledger import ProcessedLedger
    return ProcessedLedger(tmp_path / "processed_comments.json")
