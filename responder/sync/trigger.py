"""
Trigger Matcher

Decides whether a comment asks for an automated reply.
"""

from typing import Optional


def matches(text: Optional[str], trigger: str) -> bool:
    """Case-insensitive substring test; "@ai" also matches "@airplane"."""
    return trigger.lower() in (text or "").lower()
