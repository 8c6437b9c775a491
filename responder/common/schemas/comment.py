"""
Comment Schemas

Typed views of Figma comments and the per-comment context handed to the
completion service.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Comment(BaseModel):
    """
    A single Figma comment as returned by GET /v1/files/:key/comments.

    parent_id is None for thread roots; Figma encodes that as "" on the wire.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    parent_id: Optional[str] = None
    author_handle: str = ""
    text: str = ""
    created_at: datetime
    resolved_at: Optional[datetime] = None
    node_id: Optional[str] = Field(default=None, description="Pinned element (client_meta.node_id)")

    @property
    def is_reply(self) -> bool:
        return bool(self.parent_id)

    @property
    def is_resolved(self) -> bool:
        return self.resolved_at is not None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Comment":
        """Build a Comment from a raw Figma REST payload"""
        client_meta = data.get("client_meta") or {}
        # client_meta is a list of vectors for some canvas comments
        node_id = client_meta.get("node_id") if isinstance(client_meta, dict) else None
        user = data.get("user") or {}
        return cls(
            id=str(data["id"]),
            parent_id=data.get("parent_id") or None,
            author_handle=user.get("handle", ""),
            text=data.get("message", ""),
            created_at=data["created_at"],
            resolved_at=data.get("resolved_at") or None,
            node_id=node_id or None,
        )


class ThreadMessage(BaseModel):
    """One earlier message of a comment thread, as context for the completion"""
    author_handle: str
    text: str
    is_generated: bool = False  # inferred: the message lacks the trigger phrase


class ProcessingContext(BaseModel):
    """Everything the completion service needs to answer one comment"""
    document_id: str
    document_name: str
    comment_id: str
    comment_text: str
    author_handle: str
    anchored_element_id: Optional[str] = None
    region_id: Optional[str] = None
    image_base64: Optional[str] = None
    prior_messages: List[ThreadMessage] = Field(default_factory=list)
