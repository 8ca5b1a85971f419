"""
Periodic reconcile loop.

Re-invokes a mover on the delay it asks for, so the daemon keeps converging
against drift and the connectivity status stays fresh.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from common.logging_config import get_logger, setup_logging
from common.types import MoverStatus
from mover.config import ERROR_RETRY_INTERVAL_SECONDS, PASS_TIMEOUT_SECONDS
from mover.exceptions import MoverException
from mover.mover import SyncthingMover
from mover.result import Result

logger = get_logger(__name__)

StatusCallback = Callable[[MoverStatus, Result], Awaitable[None]]


class ReconcileLoop:
    """
    Runs convergence passes for one mover, never more than one at a time.
    """

    def __init__(
        self,
        mover: SyncthingMover,
        on_status: Optional[StatusCallback] = None,
        pass_timeout: Optional[float] = PASS_TIMEOUT_SECONDS,
        error_retry_interval: float = ERROR_RETRY_INTERVAL_SECONDS
    ):
        """
        Initialize the loop.

        Args:
            mover: Mover to drive
            on_status: Coroutine called with the status record after every pass
            pass_timeout: Seconds after which a pass is abandoned (None disables)
            error_retry_interval: Delay before retrying a pass that did not complete
        """
        self.mover = mover
        self.on_status = on_status
        self.pass_timeout = pass_timeout
        self.error_retry_interval = error_retry_interval
        self.lock = asyncio.Lock()
        self.task: Optional[asyncio.Task] = None
        self.running = False

    async def start(self):
        """Start the reconcile background task."""
        if self.running:
            logger.warning("Reconcile loop already running")
            return

        setup_logging("mover")
        self.running = True
        self.task = asyncio.create_task(self._reconcile_loop())
        logger.info(f"Reconcile loop started [mover={self.mover.name}, namespace={self.mover.namespace}]")

    async def stop(self):
        """Stop the reconcile background task."""
        if not self.running:
            return

        self.running = False

        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None

        logger.info("Reconcile loop stopped")

    async def run_once(self) -> Result:
        """
        Run a single pass, waiting for any pass already in flight.

        A pass that exceeds pass_timeout is cancelled and reported as in progress.
        """
        async with self.lock:
            try:
                if self.pass_timeout:
                    result = await asyncio.wait_for(self.mover.synchronize(), timeout=self.pass_timeout)
                else:
                    result = await self.mover.synchronize()
            except asyncio.TimeoutError:
                logger.warning(f"Pass timed out after {self.pass_timeout}s")
                result = Result.in_progress(
                    error=MoverException(f"pass timed out after {self.pass_timeout}s")
                )

        if self.on_status:
            await self.on_status(self.mover.status, result)
        return result

    def next_delay(self, result: Result) -> float:
        """Seconds to wait before the next pass."""
        if result.completed and result.retry_after is not None:
            return result.retry_after
        return self.error_retry_interval

    async def _reconcile_loop(self):
        while self.running:
            try:
                result = await self.run_once()
                delay = self.next_delay(result)
            except Exception as e:
                logger.error(f"Error in reconcile pass: {e}", exc_info=True)
                delay = self.error_retry_interval

            await asyncio.sleep(delay)
