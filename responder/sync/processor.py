"""
Document Processor

Answers one triggering comment:

1. Rebuild the earlier messages of its thread
2. Screenshot the region the thread root is pinned to (best effort)
3. Ask the completion service for a reply
4. Post the reply on the thread root
5. Record the comment in the ledger

Failures are logged and written to the engine status; they never propagate,
so the next comment is always attempted. A comment is only marked processed
after its reply is posted, which makes a failed attempt retry next cycle.
"""

import logging
from typing import Callable, Optional, Sequence

from ..common.schemas import Comment, ProcessingContext
from ..figma.images import RegionSnapshot
from .status import StatusBroadcaster
from .threads import build_context, find_root

logger = logging.getLogger("responder.sync.processor")

NOTIFICATION_TITLE = "Figma AI Responder"

Notifier = Callable[[str, str], None]


class DocumentProcessor:
    """
    Processes selected comments of one file within a polling cycle.

    Collaborators:
    - figma: FigmaClient (post_reply)
    - resolver: RegionResolver (resolve)
    - llm: LLMClient (generate)
    - ledger: ProcessedLedger (mark_processed)
    - status: StatusBroadcaster for error/counter updates
    """

    def __init__(
        self,
        figma,
        resolver,
        llm,
        ledger,
        status: StatusBroadcaster,
        trigger: str,
        system_prompt: Optional[str] = None,
        notifier: Optional[Notifier] = None,
    ):
        """
        Args:
            trigger: Trigger phrase, used to tell human and generated messages apart
            system_prompt: Custom system prompt, None for the built-in one
            notifier: Called as notifier(title, body) after each posted reply
        """
        self._figma = figma
        self._resolver = resolver
        self._llm = llm
        self._ledger = ledger
        self._status = status
        self._trigger = trigger
        self._system_prompt = system_prompt
        self._notifier = notifier

    async def process(
        self,
        document_id: str,
        document_name: str,
        comment: Comment,
        all_comments: Sequence[Comment],
    ) -> bool:
        """
        Reply to comment. Returns True when a reply was posted.
        """
        logger.info("Processing comment %s in %s", comment.id, document_name)

        try:
            prior_messages = build_context(all_comments, comment, self._trigger)
            if prior_messages:
                logger.info("Found %d previous messages in thread", len(prior_messages))

            # Replies rarely carry their own pin, and Figma only threads on roots
            root = find_root(all_comments, comment)

            snapshot = await self._resolve_region(document_id, root.id, all_comments)

            context = ProcessingContext(
                document_id=document_id,
                document_name=document_name,
                comment_id=comment.id,
                comment_text=comment.text,
                author_handle=comment.author_handle,
                anchored_element_id=snapshot.element_id,
                region_id=snapshot.region_id,
                image_base64=snapshot.image_base64,
                prior_messages=prior_messages,
            )

            logger.info("Generating reply for comment %s", comment.id)
            reply = await self._llm.generate(context, self._system_prompt)

            logger.info("Posting reply to thread root %s", root.id)
            await self._figma.post_reply(document_id, reply, root.id)
        except Exception as e:
            logger.exception("Error processing comment %s", comment.id)
            self._status.record_error(f"Failed to process comment {comment.id}: {e}")
            return False

        try:
            self._ledger.mark_processed(comment.id)
        except Exception as e:
            # The reply is already posted; the comment will be answered again next cycle
            logger.exception("Could not record comment %s as processed", comment.id)
            self._status.record_error(f"Failed to record comment {comment.id}: {e}")
        self._status.increment_processed()
        logger.info("Replied to comment %s", comment.id)

        self._notify(f"Replied to {comment.author_handle} in {document_name}")
        return True

    async def _resolve_region(self, document_id: str, anchor_id: str, all_comments) -> RegionSnapshot:
        """Screenshot for the anchor comment; any failure means no screenshot."""
        try:
            return await self._resolver.resolve(document_id, anchor_id, comments=all_comments)
        except Exception as e:
            logger.warning("Screenshot unavailable for comment %s: %s", anchor_id, e)
            return RegionSnapshot()

    def _notify(self, body: str) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier(NOTIFICATION_TITLE, body)
        except Exception as e:
            logger.warning("Notification failed: %s", e)
