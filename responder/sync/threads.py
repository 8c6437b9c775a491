"""
Thread Reconstruction

Figma returns a file's comments as one flat list where replies point at their
parent through parent_id. These helpers recover a thread from that list
without building a linked tree:

- find_root: walk parent pointers up to the thread root
- collect_thread: every comment transitively attached to a root
- build_context: the thread as ordered ThreadMessages, for the completion prompt
"""

from typing import Dict, List, Sequence

from ..common.schemas import Comment, ThreadMessage
from .trigger import matches


def find_root(comments: Sequence[Comment], target: Comment) -> Comment:
    """
    Root comment of target's thread.

    The walk stops early at a parent id that is not in comments (the last
    comment reached is returned) and at a repeated id, so malformed input
    cannot make it loop.
    """
    by_id: Dict[str, Comment] = {c.id: c for c in comments}
    current = target
    visited = {current.id}
    while current.parent_id:
        parent = by_id.get(current.parent_id)
        if parent is None or parent.id in visited:
            break
        visited.add(parent.id)
        current = parent
    return current


def collect_thread(comments: Sequence[Comment], root: Comment) -> List[Comment]:
    """
    Root plus every comment whose parent chain leads to it, in fetch order.

    Rescans the list until a pass adds nothing, so reply depth and the
    order Figma returns comments in do not matter.
    """
    thread_ids = {root.id}
    found_more = True
    while found_more:
        found_more = False
        for comment in comments:
            if comment.id not in thread_ids and comment.parent_id in thread_ids:
                thread_ids.add(comment.id)
                found_more = True

    members = [c for c in comments if c.id in thread_ids]
    if root.id not in {c.id for c in members}:
        members.insert(0, root)
    return members


def build_context(
    comments: Sequence[Comment],
    target: Comment,
    trigger: str,
) -> List[ThreadMessage]:
    """
    Earlier messages of target's thread, oldest first, without target itself.

    Messages are ordered by created_at (ties keep fetch order). A message
    that does not contain the trigger is assumed to be one of our own replies.
    """
    root = find_root(comments, target)
    thread = sorted(collect_thread(comments, root), key=lambda c: c.created_at)

    return [
        ThreadMessage(
            author_handle=comment.author_handle,
            text=comment.text,
            is_generated=not matches(comment.text, trigger),
        )
        for comment in thread
        if comment.id != target.id
    ]
