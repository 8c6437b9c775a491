"""
Scheduler

Drives the poll cycle runner on a fixed interval plus on demand.

States:
    Stopped --start()--> Running   (needs credentials and at least one file)
    Running --timer----> Running   (run_cycle, then sleep interval)
    Running --stop()---> Stopped   (timer cancelled, in-flight cycle finishes)

Only one cycle runs at a time: timer cycles and poll_now() calls queue on the
same lock, so a comment can't be picked up by two cycles before the ledger
records it.
"""

import asyncio
import logging
from typing import Callable, Optional, Set

from ..common.config import ResponderConfig
from ..common.credentials import CredentialStore
from .poller import PollCycleRunner, MISSING_CREDENTIALS, NO_FILES
from .processor import Notifier
from .status import EngineStatus, StatusBroadcaster, StatusCallback

logger = logging.getLogger("responder.sync.scheduler")


class Scheduler:
    """
    Owns the engine status and the polling timer.

    Usage:
        scheduler = Scheduler(config, credentials, ledger)
        scheduler.subscribe(lambda status: print(status))
        scheduler.start()          # inside a running event loop
        await scheduler.poll_now()
        scheduler.stop()
    """

    def __init__(
        self,
        config: ResponderConfig,
        credentials: CredentialStore,
        ledger,
        figma_factory=None,
        llm_factory=None,
        notifier: Optional[Notifier] = None,
    ):
        self._config = config
        self._credentials = credentials
        self._status = StatusBroadcaster()
        self._runner = PollCycleRunner(
            config=config,
            credentials=credentials,
            ledger=ledger,
            status=self._status,
            figma_factory=figma_factory,
            llm_factory=llm_factory,
            notifier=notifier,
        )
        self._cycle_lock = asyncio.Lock()
        self._timer: Optional[asyncio.Task] = None
        self._stopped_timers: Set[asyncio.Task] = set()
        self._inflight: Optional[asyncio.Future] = None

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    @property
    def status(self) -> EngineStatus:
        return self._status.current

    @property
    def broadcaster(self) -> StatusBroadcaster:
        return self._status

    def subscribe(self, callback: StatusCallback) -> Callable[[], None]:
        return self._status.subscribe(callback)

    def start(self) -> bool:
        """
        Start polling. Must be called with a running event loop.

        Returns True if the scheduler is running afterwards.
        """
        if self.is_running:
            logger.info("Already running")
            return True

        if not self._credentials.has_credentials():
            logger.warning("Cannot start - missing credentials")
            self._status.record_error(MISSING_CREDENTIALS)
            return False

        if not self._config.get_monitored_files():
            logger.warning("Cannot start - no files to monitor")
            self._status.record_error(NO_FILES)
            return False

        interval = self._config.get_polling_interval()
        logger.info("Starting with %ss interval", interval)

        self._status.update(active=True, last_error=None)
        self._timer = asyncio.get_running_loop().create_task(self._run_timer(interval))
        return True

    def stop(self) -> None:
        """Cancel the timer. A cycle already in progress runs to completion."""
        if self._timer is not None:
            self._timer.cancel()
            self._stopped_timers.add(self._timer)
            self._timer.add_done_callback(self._stopped_timers.discard)
            self._timer = None
        self._status.update(active=False)
        logger.info("Stopped")

    async def poll_now(self) -> bool:
        """
        Run an extra cycle now, queued behind any cycle in progress.

        Works whether or not the timer is running; returns False without
        polling when credentials are missing.
        """
        if not self._credentials.has_credentials():
            return False
        await self.run_cycle()
        return True

    async def run_cycle(self) -> None:
        async with self._cycle_lock:
            try:
                await self._runner.run_cycle()
            except Exception as e:
                logger.exception("Unexpected error in poll cycle")
                self._status.record_error(f"Poll cycle failed: {e}")

    async def wait_idle(self) -> None:
        """Wait until no cycle is in progress and stopped timers have exited."""
        pending = list(self._stopped_timers)
        if self._inflight is not None:
            pending.append(self._inflight)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        async with self._cycle_lock:
            pass

    async def _run_timer(self, interval: int) -> None:
        while True:
            # Shielded so stop() cancels the wait, not a running cycle
            self._inflight = asyncio.ensure_future(self.run_cycle())
            await asyncio.shield(self._inflight)
            await asyncio.sleep(interval)
