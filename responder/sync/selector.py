"""
Comment Selector

Filters a file's comments down to the ones that still need a reply.
"""

from typing import List, Sequence

from ..common.schemas import Comment
from .trigger import matches


def select_comments(comments: Sequence[Comment], ledger, trigger: str) -> List[Comment]:
    """
    Unanswered, unresolved comments that contain the trigger, in input order.

    Args:
        comments: All comments of one file
        ledger: Anything with is_processed(comment_id) -> bool
        trigger: Trigger phrase

    Nothing is marked here; the processor marks a comment only after its
    reply has been posted.
    """
    return [
        comment
        for comment in comments
        if not ledger.is_processed(comment.id)
        and not comment.is_resolved
        and matches(comment.text, trigger)
    ]
