"""
Responder Schemas

Comment, thread and completion-context models plus prompt templates.
"""

from .comment import Comment, ThreadMessage, ProcessingContext
from .templates import SYSTEM_PROMPT, FALLBACK_REPLY, get_system_prompt, render_user_prompt

__all__ = [
    "Comment",
    "ThreadMessage",
    "ProcessingContext",
    "SYSTEM_PROMPT",
    "FALLBACK_REPLY",
    "get_system_prompt",
    "render_user_prompt",
]
