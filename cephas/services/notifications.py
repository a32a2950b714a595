"""
Background refresh of the notification feed.

Each cycle fetches the feed once; a failed fetch is retried after
``backoff * attempt`` seconds up to ``max_retries`` times. When the retries
run out the feed is emptied, the error is surfaced and the poller waits for
the next cycle. Stopping the poller cancels the task and clears the feed.
"""
import asyncio
from typing import Any, Awaitable, Callable, List, Optional

import structlog
from pydantic import ValidationError

from ..config import settings
from ..schemas.records import Notification
from ..state import AppState
from .api_client import ApiError

logger = structlog.get_logger(__name__)

Fetch = Callable[[], Awaitable[List[Any]]]
ErrorSink = Callable[[str], None]


class NotificationPoller:
    def __init__(
        self,
        fetch: Fetch,
        state: AppState,
        interval: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff: Optional[float] = None,
        on_error: Optional[ErrorSink] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.fetch = fetch
        self.state = state
        self.interval = settings.notification_interval_seconds if interval is None else interval
        self.max_retries = settings.notification_max_retries if max_retries is None else max_retries
        self.backoff = settings.notification_backoff_seconds if backoff is None else backoff
        self.on_error = on_error
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _surface(self, message: str) -> None:
        if self.on_error is not None:
            self.on_error(message)

    async def poll_once(self) -> bool:
        """One refresh cycle. Returns False when every attempt failed."""
        attempt = 0
        while True:
            try:
                items = await self.fetch()
                feed = [Notification.model_validate(i) for i in items or []]
            except (ApiError, ValidationError) as e:
                if attempt >= self.max_retries:
                    logger.warning("notifications_unavailable", attempts=attempt + 1, error=str(e))
                    self.state.notifications = []
                    self._surface("Failed to load notifications after multiple attempts")
                    return False
                attempt += 1
                self._surface(f"Failed to load notifications. Retrying... ({attempt}/{self.max_retries})")
                await self._sleep(self.backoff * attempt)
                continue
            self.state.notifications = feed
            if attempt:
                logger.info("notifications_recovered", attempts=attempt + 1)
            return True

    async def run(self) -> None:
        while True:
            await self.poll_once()
            await self._sleep(self.interval)

    def start(self) -> asyncio.Task:
        """Schedule the loop on the running event loop; a second call is a no-op."""
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.state.notifications = []
