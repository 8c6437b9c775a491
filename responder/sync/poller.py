"""
Poll Cycle Runner

One cycle = one pass over every monitored file:

    for each file (sequentially):
        fetch name + comments -> select actionable comments -> process each

A failure while checking one file is recorded and the next file is still
checked. Clients are built per cycle from the current credentials, so
settings changed between cycles take effect on the next one.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from ..common.config import ResponderConfig
from ..common.credentials import CredentialStore
from ..common.llm_client import LLMClient
from ..figma.client import FigmaClient
from ..figma.images import RegionResolver
from .processor import DocumentProcessor, Notifier
from .selector import select_comments
from .status import StatusBroadcaster

logger = logging.getLogger("responder.sync.poller")

MISSING_CREDENTIALS = "Missing API credentials"
NO_FILES = "No files to monitor"


class PollCycleRunner:
    """Runs polling cycles against Figma and the completion service."""

    def __init__(
        self,
        config: ResponderConfig,
        credentials: CredentialStore,
        ledger,
        status: StatusBroadcaster,
        figma_factory: Optional[Callable[[str], FigmaClient]] = None,
        llm_factory: Optional[Callable[[str, str], LLMClient]] = None,
        notifier: Optional[Notifier] = None,
    ):
        """
        Args:
            config: Live configuration (trigger, files, model, prompt)
            credentials: Token/key accessors
            ledger: ProcessedLedger
            status: Engine status to update
            figma_factory: token -> FigmaClient (override in tests)
            llm_factory: (api_key, model) -> LLMClient (override in tests)
            notifier: notifier(title, body), used when notifications are enabled
        """
        self._config = config
        self._credentials = credentials
        self._ledger = ledger
        self._status = status
        self._figma_factory = figma_factory or self._default_figma_factory
        self._llm_factory = llm_factory or self._default_llm_factory
        self._notifier = notifier

    def _default_figma_factory(self, token: str) -> FigmaClient:
        return FigmaClient(token, api_base=self._config.figma.api_base, timeout=self._config.figma.timeout)

    def _default_llm_factory(self, api_key: str, model: str) -> LLMClient:
        return LLMClient(
            anthropic_api_key=api_key,
            model=model,
            max_tokens=self._config.llm.max_tokens,
            timeout=self._config.llm.timeout,
        )

    async def run_cycle(self) -> None:
        """Check every monitored file once. Never raises."""
        token = self._credentials.get_figma_token()
        api_key = self._credentials.get_anthropic_key()
        if not token or not api_key:
            self._status.record_error(MISSING_CREDENTIALS)
            return

        files = self._config.get_monitored_files()
        if not files:
            self._status.record_error(NO_FILES)
            return

        self._status.update(documents_monitored=len(files), last_error=None)
        logger.info("Checking %d file(s)...", len(files))

        trigger = self._config.get_trigger()
        notifier = self._notifier if self._config.get_notifications_enabled() else None

        figma = self._figma_factory(token)
        llm = self._llm_factory(api_key, self._config.get_model())
        try:
            processor = DocumentProcessor(
                figma=figma,
                resolver=RegionResolver(figma),
                llm=llm,
                ledger=self._ledger,
                status=self._status,
                trigger=trigger,
                system_prompt=self._config.get_system_prompt(),
                notifier=notifier,
            )
            for file_key in files:
                await self.check_document(figma, processor, file_key, trigger)
        finally:
            await self._close_clients(figma, llm)

        self._status.update(last_check_at=datetime.now(timezone.utc))
        logger.info("Check complete")

    async def check_document(self, figma, processor: DocumentProcessor, file_key: str, trigger: str) -> int:
        """Process new triggering comments of one file; returns the number answered."""
        try:
            document_name = await figma.get_document_name(file_key)
            comments = await figma.list_comments(file_key)

            selected = select_comments(comments, self._ledger, trigger)
            if selected:
                logger.info("%d new comment(s) for %s", len(selected), document_name)

            answered = 0
            for comment in selected:
                if await processor.process(file_key, document_name, comment, comments):
                    answered += 1
            return answered
        except Exception as e:
            logger.exception("Error checking file %s", file_key)
            self._status.record_error(f"Failed to check file {file_key}: {e}")
            return 0

    @staticmethod
    async def _close_clients(*clients) -> None:
        for client in clients:
            try:
                await client.close()
            except Exception as e:
                logger.warning("Failed to close %s: %s", type(client).__name__, e)
